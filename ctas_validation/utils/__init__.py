from .sampling import sample_site
from .prep import prep_sdtm_lb, prep_sdtm_vs, scramble_sites

__all__ = [
    'sample_site',
    'prep_sdtm_lb',
    'prep_sdtm_vs',
    'scramble_sites',
]
