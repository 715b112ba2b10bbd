"""
Tests for schema introspection.
"""
import pytest
from datapacket.adapters.column_info import ColumnDescriptor
from datapacket.config.naming import NamingConfig
from datapacket.exceptions import SchemaError
from datapacket.introspect import describe_column, introspect
from datapacket.packet import Constraint, SemanticType


def test_introspect_user_columns(user_descriptors):
    """One ColumnMeta per descriptor, in source order"""
    columns = introspect(user_descriptors)
    assert [c.name for c in columns] == ['User_ID', 'User_NM', 'Is_Active', 'Signup_DT']
    assert [c.semantic_type for c in columns] == [
        SemanticType.INTEGER, SemanticType.STRING, SemanticType.BOOLEAN, SemanticType.DATE]


def test_required_is_negated_nullability(user_descriptors):
    """required follows the source's nullability flag"""
    columns = {c.name: c for c in introspect(user_descriptors)}
    assert columns['User_ID'].constraint.required is True
    assert columns['Signup_DT'].constraint.required is False


def test_unknown_nullability_is_not_required():
    """Drivers that don't report nullability produce optional columns"""
    (column,) = introspect([ColumnDescriptor('User_NM', str)])
    assert column.constraint.required is False


def test_boolean_prefix_keeps_nullability():
    """The Is_ prefix sets the type but never forces the required flag"""
    nullable, not_null = introspect([
        ColumnDescriptor('Is_Active', bool, None, True),
        ColumnDescriptor('Has_Email', bool, None, False),
        ])
    assert nullable.semantic_type is SemanticType.BOOLEAN
    assert nullable.constraint.required is False
    assert not_null.constraint.required is True


def test_constraint_carries_length_and_format():
    """max_length comes from the source, format from classification"""
    (name, amount) = introspect([
        ColumnDescriptor('User_NM', str, 50, False),
        ColumnDescriptor('Balance_AMT', 'numeric(18,2)', None, False),
        ])
    assert name.constraint == Constraint(required=True, max_length=50, format=None)
    assert amount.format == '#,##0'
    assert amount.constraint == Constraint(required=True, max_length=None, format='#,##0')


def test_mapping_and_tuple_descriptors():
    """Descriptors may be given as mappings or tuples"""
    columns = introspect([
        {'name': 'User_ID', 'storageType': 'int', 'nullable': False},
        ('Login_CNT', 'int', None, True),
        ])
    assert [c.semantic_type for c in columns] == [SemanticType.INTEGER, SemanticType.INTEGER]


@pytest.mark.parametrize('descriptors', [None, [], ()])
def test_no_result_description(descriptors):
    """No description means no columns"""
    assert introspect(descriptors) == []


def test_duplicate_column_names():
    """Repeated column names are rejected"""
    with pytest.raises(SchemaError, match='Duplicate'):
        introspect([ColumnDescriptor('User_ID', int), ColumnDescriptor('User_ID', str)])


@pytest.mark.parametrize('name', ['', '   ', None, 42])
def test_unusable_name(name):
    """Empty, missing or non-string names are rejected"""
    with pytest.raises(SchemaError):
        describe_column(ColumnDescriptor(name, str))


@pytest.mark.parametrize('max_length', [-1, 'fifty', True, 2.5])
def test_invalid_max_length(max_length):
    """Negative or non-integer lengths are rejected"""
    with pytest.raises(SchemaError):
        introspect([ColumnDescriptor('User_NM', str, max_length)])


def test_non_iterable_descriptors():
    """A descriptor list that is not iterable is rejected"""
    with pytest.raises(SchemaError):
        introspect(42)


def test_explicit_config():
    """An explicit configuration replaces the loaded one"""
    config = NamingConfig(search_defaults=False)
    config.add_column_override('Score', 'percentage', '0.00%')
    (column,) = introspect([ColumnDescriptor('Score', float)], config=config)
    assert column.semantic_type is SemanticType.PERCENTAGE
    assert column.constraint.format == '0.00%'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
