"""bindQL result layer: lazily typed rows and seekable result sets."""
from bindql.result.fields import DataJSON, DataSerialize, decode_value, is_json, is_serialized
from bindql.result.result import Result, ResultInfo
from bindql.result.row import FieldSettable, Row

__all__ = [
    "DataJSON",
    "DataSerialize",
    "FieldSettable",
    "Result",
    "ResultInfo",
    "Row",
    "decode_value",
    "is_json",
    "is_serialized",
]
