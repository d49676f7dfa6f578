from .retention import DataRetentionService, DATA_RETENTION_JOB

__all__ = ['DataRetentionService', 'DATA_RETENTION_JOB']
