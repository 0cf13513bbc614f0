from enum import Enum


class FilterOperator(str, Enum):
    """Comparison operators accepted in filter clauses."""

    # Standard comparison
    EQ = "="
    NE = "!="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="

    # String operations
    LIKE = "like"
    NOT_LIKE = "not like"
    CONTAINS = "contains"

    # Set membership
    IN = "in"
    NOT_IN = "not in"

    # Null checks
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    @property
    def takes_value(self) -> bool:
        return self not in (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"
