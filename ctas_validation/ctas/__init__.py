from .oracle import Oracle, OracleResult, OracleTuning, load_oracle
from .adapter import get_ctas

__all__ = ["Oracle", "OracleResult", "OracleTuning", "load_oracle", "get_ctas"]
