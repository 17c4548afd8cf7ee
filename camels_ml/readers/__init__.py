"""Dataset readers."""

from camels_ml.readers.camels_reader import (
    CAMELS_ATTRIBUTE_GROUPS,
    check_unique_ids,
    read_camels_attributes,
    read_dataset,
    select_columns,
)

__all__ = [
    "CAMELS_ATTRIBUTE_GROUPS",
    "check_unique_ids",
    "read_camels_attributes",
    "read_dataset",
    "select_columns",
]
