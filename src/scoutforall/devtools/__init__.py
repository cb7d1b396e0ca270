from .coverage_audit import TableCoverageAuditor

__all__ = ["TableCoverageAuditor"]
