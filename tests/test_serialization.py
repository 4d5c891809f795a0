"""
Byte codec, base64 transport and transcript framing.
"""

import pytest
from charm.toolbox.pairinggroup import G1, G2, ZR

from proof_system import SerializationError
from proof_system.errors import InvalidData
from proof_system.serialization import ByteReader, ByteWriter, from_base64, to_base64
from proof_system.transcript import Transcript
from proof_system.utils import identity, scalar


class TestByteCodec:

    def test_varint_boundaries(self, group):
        values = [0, 1, 127, 128, 300, 2 ** 63]
        w = ByteWriter(group)
        for v in values:
            w.write_varint(v)
        r = ByteReader(group, w.getvalue())
        assert [r.read_varint() for _ in values] == values
        r.finish()

    def test_elements_and_scalars(self, group):
        g1 = group.hash(b"codec", G1)
        g2 = group.hash(b"codec", G2)
        x = group.hash(b"codec", ZR)
        w = ByteWriter(group)
        w.write_element(g1)
        w.write_element(g2, G2)
        w.write_element(identity(group))
        w.write_scalar(x)
        r = ByteReader(group, w.getvalue())
        assert r.read_element() == g1
        assert r.read_element(G2) == g2
        assert r.read_element() == identity(group)
        assert r.read_scalar() == x
        r.finish()

    def test_identity_is_empty(self, group):
        w = ByteWriter(group)
        w.write_element(identity(group))
        assert w.getvalue() == b"\x00"

    def test_truncated_input(self, group):
        w = ByteWriter(group)
        w.write_scalar(scalar(group, 5))
        with pytest.raises(InvalidData):
            ByteReader(group, w.getvalue()[:-1]).read_scalar()

    def test_trailing_bytes(self, group):
        w = ByteWriter(group)
        w.write_u8(1)
        r = ByteReader(group, w.getvalue() + b"\x00")
        r.read_u8()
        with pytest.raises(InvalidData):
            r.finish()

    def test_unreduced_scalar(self, group):
        order = int(group.order())
        data = order.to_bytes((order.bit_length() + 7) // 8, 'big')
        with pytest.raises(InvalidData):
            ByteReader(group, data).read_scalar()

    def test_element_of_wrong_type(self, group):
        w = ByteWriter(group)
        w.write_element(group.hash(b"x", G2), G2)
        with pytest.raises(InvalidData):
            ByteReader(group, w.getvalue()).read_element(G1)

    def test_oversized_count(self, group):
        w = ByteWriter(group)
        w.write_varint(1000)
        with pytest.raises(InvalidData):
            ByteReader(group, w.getvalue()).read_scalars()

    def test_base64(self):
        assert from_base64(to_base64(b"\x00\xffproof")) == b"\x00\xffproof"
        with pytest.raises(InvalidData):
            from_base64("not base64!")

    def test_serialization_error_alias(self, group):
        assert SerializationError is InvalidData
        with pytest.raises(SerializationError):
            ByteReader(group, b"\x05").read_bytes()


class TestTranscript:

    def test_same_appends_same_challenge(self, group):
        def build():
            t = Transcript(group)
            t.append_message(b"a", b"bc")
            t.append_u64(b"n", 3)
            t.append_element(b"g", group.hash(b"t", G1))
            return t
        assert build().getvalue() == build().getvalue()
        assert build().challenge() == build().challenge()

    def test_framing_separates_boundaries(self, group):
        t1 = Transcript(group)
        t1.append_message(b"a", b"bc")
        t2 = Transcript(group)
        t2.append_message(b"ab", b"c")
        assert t1.getvalue() != t2.getvalue()
        assert t1.challenge() != t2.challenge()

    def test_protocol_label(self, group):
        assert Transcript(group, b"one").challenge() != Transcript(group, b"two").challenge()
