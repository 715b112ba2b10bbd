"""
Naming-convention inference for result columns.

A column's semantic type is read from its name first and from its storage
type second. The rules live in an ordered table so that server-side metadata
and client-side widget resolution evaluate exactly the same policy:

    suffix _DT    -> date        YYYY-MM-DD
    suffix _AMT   -> currency    #,##0
    suffix _CNT   -> integer
    suffix _Rate  -> percentage  0.00%
    suffix _YN    -> string      Y/N
    prefix Is_    -> boolean
    prefix Has_   -> boolean

First match wins and matching is case-sensitive. Columns that match nothing
take their semantic type from the storage family.
"""
import logging
from dataclasses import dataclass
from typing import Any

from datapacket.adapters import type_mapping
from datapacket.config.naming import NamingConfig
from datapacket.packet import SemanticType

logger = logging.getLogger(__name__)

__all__ = [
    'NamingRule',
    'Classification',
    'NAMING_RULES',
    'ID_SUFFIX',
    'DESC_SUFFIX',
    'COUNT_SUFFIX',
    'YN_FORMAT',
    'classify',
    'match_rule',
    'semantic_type_for_storage',
]

YN_FORMAT = 'Y/N'
ID_SUFFIX = '_ID'
DESC_SUFFIX = '_DESC'
COUNT_SUFFIX = '_CNT'


@dataclass(frozen=True)
class NamingRule:
    """One row of the naming table.

    `position` is 'suffix' or 'prefix'; `pattern` is matched verbatim.
    """
    position: str
    pattern: str
    semantic_type: SemanticType
    format: str | None = None

    def matches(self, column_name: str) -> bool:
        if self.position == 'suffix':
            return column_name.endswith(self.pattern)
        return column_name.startswith(self.pattern)

    def to_dict(self) -> dict[str, Any]:
        return {
            'position': self.position,
            'pattern': self.pattern,
            'type': self.semantic_type.value,
            'format': self.format,
            }


@dataclass(frozen=True)
class Classification:
    semantic_type: SemanticType
    format: str | None = None


# suffix rules precede prefix rules
NAMING_RULES: tuple[NamingRule, ...] = (
    NamingRule('suffix', '_DT', SemanticType.DATE, 'YYYY-MM-DD'),
    NamingRule('suffix', '_AMT', SemanticType.CURRENCY, '#,##0'),
    NamingRule('suffix', COUNT_SUFFIX, SemanticType.INTEGER),
    NamingRule('suffix', '_Rate', SemanticType.PERCENTAGE, '0.00%'),
    NamingRule('suffix', '_YN', SemanticType.STRING, YN_FORMAT),
    NamingRule('prefix', 'Is_', SemanticType.BOOLEAN),
    NamingRule('prefix', 'Has_', SemanticType.BOOLEAN),
    )


_FAMILY_TYPES: dict[str, SemanticType] = {
    type_mapping.INTEGER: SemanticType.INTEGER,
    type_mapping.DECIMAL: SemanticType.NUMBER,
    type_mapping.TEMPORAL: SemanticType.DATETIME,
    type_mapping.BOOLEAN: SemanticType.BOOLEAN,
    type_mapping.STRING: SemanticType.STRING,
    }


def match_rule(column_name: str, rules: tuple[NamingRule, ...] = NAMING_RULES) -> NamingRule | None:
    """First rule matching the column name, or None.

    Suffix rules are always tried before prefix rules, whatever order the
    table lists them in.

    >>> match_rule('Signup_DT').semantic_type.value
    'date'
    >>> match_rule('User_NM') is None
    True
    """
    for position in ('suffix', 'prefix'):
        for rule in rules:
            if rule.position == position and rule.matches(column_name):
                return rule
    return None


def semantic_type_for_storage(storage_type: Any) -> SemanticType:
    """Fallback semantic type from the storage family alone.

    >>> semantic_type_for_storage(int).value
    'integer'
    >>> semantic_type_for_storage('nvarchar(40)').value
    'string'
    """
    family = type_mapping.resolve_storage_family(storage_type)
    return _FAMILY_TYPES.get(family, SemanticType.STRING)


def _configured_suffix(column_name: str, config: NamingConfig) -> Classification | None:
    for entry in config.suffix_rules:
        if column_name.endswith(entry['suffix']):
            return Classification(SemanticType.coerce(entry['type']), entry['format'])
    return None


def classify(column_name: str, storage_type: Any = None,
             config: NamingConfig | None = None) -> Classification:
    """Classify a column by name, then by storage type.

    Args:
        column_name: Column identifier exactly as the source reports it
        storage_type: Python type, type OID or type name; None if unknown
        config: Naming overrides (defaults to the loaded NamingConfig)

    Returns
        Classification with semantic type and format hint

    >>> classify('Total_AMT', str).semantic_type.value
    'currency'
    >>> classify('Is_Active', 'bit').semantic_type.value
    'boolean'
    >>> classify('Score', float).semantic_type.value
    'number'
    """
    if config is None:
        config = NamingConfig.get_instance()

    override = config.get_column_override(column_name)
    if override is not None:
        return Classification(SemanticType.coerce(override[0]), override[1])

    rule = match_rule(column_name)
    if rule is not None:
        return Classification(rule.semantic_type, rule.format)

    configured = _configured_suffix(column_name, config)
    if configured is not None:
        return configured

    return Classification(semantic_type_for_storage(storage_type))


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
