from .classification import CLASSES, classify, clopper_pearson, detection_rates, tabulate_classification

__all__ = ["CLASSES", "classify", "clopper_pearson", "detection_rates", "tabulate_classification"]
