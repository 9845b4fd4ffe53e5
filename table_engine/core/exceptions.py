

class TableEngineError(Exception):
    """Base exception for all table_engine errors"""
    pass

class ConfigError(TableEngineError):
    """Invalid or inconsistent table definition JSON"""
    pass

class DatasetSchemaError(TableEngineError):
    """
    Records don't match what Dataset expects
    missing identifier field, duplicate identifiers, non-mapping rows, etc
    """
    pass

class InvalidFilterError(TableEngineError):
    """Operator not allowed for the filter's property type"""
    pass

class ColumnIndexError(TableEngineError, IndexError):
    """Column index outside the registry"""
    pass

class UnknownRecordError(TableEngineError, KeyError):
    """No record with the given identifier in the dataset"""
    pass
