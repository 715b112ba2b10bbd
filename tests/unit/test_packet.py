"""
Tests for the packet data model.
"""
import dataclasses

import pandas as pd
import pytest
from datapacket.builder import build, build_multi
from datapacket.exceptions import SchemaError
from datapacket.packet import Constraint, ListResult, Meta, MultiPacket, Packet
from datapacket.packet import SemanticType


@pytest.fixture
def user_packet(user_descriptors):
    return build(user_descriptors, [(1, 'Ann', True, None), (2, 'Bob', False, '2024-01-15')])


@pytest.fixture
def paged_multi():
    return build_multi([
        ([('Total_CNT', int, None, False)], [(42,)]),
        ([('User_ID', int, None, False), ('User_NM', str, 50, True)], [(1, 'Ann'), (2, 'Bob')]),
        ])


class TestConstraint:

    def test_to_dict_omits_absent_fields(self):
        """Only present optionals are emitted"""
        assert Constraint(required=True).to_dict() == {'required': True}
        assert Constraint(False, 50, 'Y/N').to_dict() == {'maxLength': 50, 'required': False, 'format': 'Y/N'}

    def test_negative_max_length(self):
        """A negative maximum length is rejected"""
        with pytest.raises(SchemaError):
            Constraint(max_length=-1)

    def test_from_dict_requires_required(self):
        """The required flag is mandatory on the wire"""
        with pytest.raises(SchemaError):
            Constraint.from_dict({'maxLength': 10})
        assert Constraint.from_dict({'required': True, 'maxLength': 10}) == Constraint(True, 10)


class TestMeta:

    def test_columns_and_types_must_align(self):
        """columns and types have equal length"""
        with pytest.raises(SchemaError):
            Meta(columns=('A', 'B'), types=('integer',))

    def test_column_names_unique(self):
        """Column names may not repeat"""
        with pytest.raises(SchemaError):
            Meta(columns=('A', 'A'), types=('integer', 'integer'))

    def test_column_meta_view(self, user_packet):
        """column_meta rebuilds per-column records from the wire view"""
        columns = user_packet.column_meta()
        assert [c.semantic_type for c in columns] == [
            SemanticType.INTEGER, SemanticType.STRING, SemanticType.BOOLEAN, SemanticType.DATE]
        assert columns[3].format == 'YYYY-MM-DD'

    def test_missing_constraint_defaults(self):
        """A column without a constraint entry is optional"""
        meta = Meta(columns=('A',), types=('string',))
        assert meta.column_meta()[0].constraint == Constraint()

    def test_index(self, user_packet):
        """index finds a column's position"""
        assert user_packet.meta.index('Is_Active') == 2

    def test_from_dict_malformed(self):
        """Missing keys surface as schema errors"""
        with pytest.raises(SchemaError):
            Meta.from_dict({'columns': ['A']})


class TestSemanticType:

    def test_coerce(self):
        """Wire names coerce case-insensitively, unknown names to string"""
        assert SemanticType.coerce('CURRENCY') is SemanticType.CURRENCY
        assert SemanticType.coerce(SemanticType.DATE) is SemanticType.DATE
        assert SemanticType.coerce('geometry') is SemanticType.STRING

    def test_wire_value(self):
        """Members compare equal to their wire names"""
        assert SemanticType.PERCENTAGE == 'percentage'


class TestPacket:

    def test_row_width_validated(self):
        """Every row has one cell per column"""
        meta = Meta(columns=('A', 'B'), types=('integer', 'integer'))
        with pytest.raises(SchemaError):
            Packet(meta=meta, data=((1, 2), (3,)))

    def test_immutable(self, user_packet):
        """Packets cannot be modified once built"""
        with pytest.raises(dataclasses.FrozenInstanceError):
            user_packet.data = ()

    def test_constraints_read_only(self, user_packet):
        """Column constraints cannot be replaced or removed after the build"""
        with pytest.raises(TypeError):
            user_packet.meta.constraints['User_NM'] = None
        with pytest.raises(TypeError):
            del user_packet.meta.constraints['User_ID']
        assert user_packet.meta.constraints['User_NM'].max_length == 50

    def test_hashable(self, user_packet, user_descriptors):
        """Equal packets hash equally"""
        again = build(user_descriptors, [(1, 'Ann', True, None), (2, 'Bob', False, '2024-01-15')])
        assert hash(again) == hash(user_packet)
        assert again == user_packet

    def test_len_and_columns(self, user_packet):
        """len counts rows; columns lists names"""
        assert len(user_packet) == 2
        assert user_packet.columns == ('User_ID', 'User_NM', 'Is_Active', 'Signup_DT')

    def test_first_row(self, user_packet):
        """first_row is keyed by column name with attribute access"""
        row = user_packet.first_row()
        assert row['User_NM'] == 'Ann'
        assert row.User_ID == 1
        assert row.Signup_DT is None

    def test_first_row_empty(self, user_descriptors):
        """first_row is None when there are no rows"""
        assert build(user_descriptors, []).first_row() is None

    def test_records(self, user_packet):
        """records returns one mapping per row"""
        assert [r['User_NM'] for r in user_packet.records()] == ['Ann', 'Bob']
        assert user_packet.row_dict(1)['Signup_DT'] == '2024-01-15'

    def test_to_dataframe(self, user_packet):
        """DataFrames keep column order and carry metadata in attrs"""
        df = user_packet.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ['User_ID', 'User_NM', 'Is_Active', 'Signup_DT']
        assert df['User_NM'].tolist() == ['Ann', 'Bob']
        assert df.attrs['column_types']['Signup_DT'] == 'date'
        assert df.attrs['constraints']['User_NM'] == {'maxLength': 50, 'required': True}

    def test_to_dataframe_arrow(self, user_packet):
        """The arrow loader produces Arrow-backed columns"""
        df = user_packet.to_dataframe(arrow=True)
        assert isinstance(df['User_ID'].dtype, pd.ArrowDtype)
        assert df['User_ID'].tolist() == [1, 2]

    def test_to_dataframe_empty(self, user_descriptors):
        """Empty packets still give a DataFrame with their columns"""
        df = build(user_descriptors, []).to_dataframe()
        assert df.empty
        assert list(df.columns) == ['User_ID', 'User_NM', 'Is_Active', 'Signup_DT']

    def test_from_dict_requires_meta_and_data(self):
        """A packet needs both meta and data"""
        with pytest.raises(SchemaError):
            Packet.from_dict({'meta': {'columns': [], 'types': []}})


class TestMultiPacket:

    def test_iteration(self, paged_multi):
        """MultiPacket is indexable and iterable in emission order"""
        assert len(paged_multi) == 2
        assert [p.columns for p in paged_multi] == [('Total_CNT',), ('User_ID', 'User_NM')]
        assert paged_multi[0].data == ((42,),)

    def test_paged(self, paged_multi):
        """A total-count set and a page set combine into a ListResult"""
        page = paged_multi.paged()
        assert isinstance(page, ListResult)
        assert page.total == 42
        assert page.meta.columns == ('User_ID', 'User_NM')
        assert [r.User_NM for r in page.records()] == ['Ann', 'Bob']
        assert page.packet == paged_multi[1]

    def test_paged_missing_result_set(self):
        """Paging needs both result sets"""
        multi = build_multi([([('Total_CNT', int)], [(1,)])])
        with pytest.raises(SchemaError):
            multi.paged()

    def test_paged_empty_total(self):
        """Paging needs a total value"""
        multi = build_multi([([('Total_CNT', int)], []), ([('User_ID', int)], [])])
        with pytest.raises(SchemaError):
            multi.paged()

    def test_list_result_to_dict(self, paged_multi):
        """A ListResult serializes total alongside meta and data"""
        wire = paged_multi.paged().to_dict()
        assert wire['total'] == 42
        assert wire['data'] == [[1, 'Ann'], [2, 'Bob']]

    def test_from_dict_requires_results(self):
        """A multi-packet needs its results list"""
        with pytest.raises(SchemaError):
            MultiPacket.from_dict({})


if __name__ == '__main__':
    __import__('pytest').main([__file__])
