"""Validate anomaly-scoring performance by injecting synthetic sites."""

from ctas_validation.ctas import Oracle, OracleResult, OracleTuning, get_ctas, load_oracle
from ctas_validation.experiments.ctasval import ValidationResult, ctasval
from ctas_validation.experiments.injection import get_anomaly_data
from ctas_validation.experiments.scoring import AnomalyScores, get_anomaly_scores
from ctas_validation.utils.prep import prep_sdtm_lb, prep_sdtm_vs
from ctas_validation.utils.sampling import sample_site

__all__ = [
    "AnomalyScores",
    "Oracle",
    "OracleResult",
    "OracleTuning",
    "ValidationResult",
    "ctasval",
    "get_anomaly_data",
    "get_anomaly_scores",
    "get_ctas",
    "load_oracle",
    "prep_sdtm_lb",
    "prep_sdtm_vs",
    "sample_site",
]
