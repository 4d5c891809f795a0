"""
Backend primitives on their own: signatures, accumulator witnesses,
verifiable encryption and the range-proof decompositions.
"""

import pytest
from charm.toolbox.pairinggroup import ZR

from proof_system import make_rng
from proof_system.backends.accumulator import Accumulator, hash_element
from proof_system.backends.elgamal import ElgamalParams, VerifiableEncryptionProtocol, decompose
from proof_system.backends.set_membership import (
    SmcParams,
    base_digits,
    ccs_digit_count,
    ccs_layout,
    cls_weights,
    sumset_digits,
)
from proof_system.config import config
from proof_system.errors import DecryptionError, InvalidStatement, InvalidWitness
from proof_system.transcript import Transcript
from proof_system.utils import random_scalar, scalar


class TestSignatures:

    def test_bbs_plus_sign_verify(self, group, bbs):
        assert bbs.signature.verify(group, bbs.messages, bbs.keypair.public_key, bbs.params)

    def test_bbs_plus_rejects_other_messages(self, group, bbs):
        tampered = list(bbs.messages)
        tampered[0] = scalar(group, 1)
        assert not bbs.signature.verify(group, tampered, bbs.keypair.public_key, bbs.params)

    def test_ps_sign_verify(self, group, ps):
        assert ps.signature.verify(group, ps.messages, ps.keypair.public_key, ps.params)

    def test_ps_rejects_other_messages(self, group, ps):
        tampered = list(ps.messages)
        tampered[-1] = scalar(group, 31)
        assert not ps.signature.verify(group, tampered, ps.keypair.public_key, ps.params)


class TestAccumulator:

    def test_membership_witness(self, group, accumulator):
        a = accumulator
        y = a.members[2]
        w = a.acc.membership_witness(y, a.keypair.secret_key)
        assert Accumulator.verify_membership(a.params, a.keypair.public_key, a.acc.value, y, w)
        assert not Accumulator.verify_membership(a.params, a.keypair.public_key, a.acc.value,
                                                 a.non_member, w)

    def test_non_membership_witness(self, group, accumulator):
        a = accumulator
        w = a.acc.non_membership_witness(a.non_member, a.keypair.secret_key)
        assert Accumulator.verify_non_membership(group, a.params, a.keypair.public_key,
                                                 a.acc.value, a.non_member, w)

    def test_non_membership_of_member_is_refused(self, group, accumulator):
        a = accumulator
        with pytest.raises(InvalidWitness):
            a.acc.non_membership_witness(a.members[0], a.keypair.secret_key)

    def test_server_key_witnesses_match_secret_key_witnesses(self, group, accumulator):
        """
        Workflow:
        1. Manager publishes the server keys g, g^s, ..., g^(s^q)
        2. Witnesses computed from them by polynomial division equal those
           computed with the secret key
        """
        a = accumulator
        keys = a.acc.server_keys(a.keypair.secret_key)
        assert len(keys) == len(a.members) + 1
        y = a.members[1]
        assert (a.acc.membership_witness_from_server_keys(y, keys)
                == a.acc.membership_witness(y, a.keypair.secret_key))
        assert (a.acc.non_membership_witness_from_server_keys(a.non_member, keys)
                == a.acc.non_membership_witness(a.non_member, a.keypair.secret_key))

    def test_add_and_remove(self, group, accumulator):
        a = accumulator
        acc = Accumulator(group, a.params)
        y1, y2 = hash_element(group, b"one"), hash_element(group, b"two")
        acc.add(y1, a.keypair.secret_key)
        before = acc.value
        acc.add(y2, a.keypair.secret_key)
        acc.remove(y2, a.keypair.secret_key)
        assert acc.value == before
        assert y2 not in acc
        with pytest.raises(ValueError):
            acc.add(y1, a.keypair.secret_key)


class TestVerifiableEncryption:

    def _encrypt(self, group, elgamal, message):
        rng = make_rng(11)
        protocol = VerifiableEncryptionProtocol(group, rng, message, elgamal.params,
                                                elgamal.keypair.public_key, random_scalar(group, rng))
        t = Transcript(group)
        protocol.challenge_contribution(t)
        return protocol.gen_proof(t.challenge())

    def test_proof_verifies(self, group, elgamal):
        proof = self._encrypt(group, elgamal, scalar(group, 4242))
        t = Transcript(group)
        proof.challenge_contribution(t, group, elgamal.params, elgamal.keypair.public_key)
        assert proof.verify(group, t.challenge(), elgamal.params, elgamal.keypair.public_key)

    def test_proof_without_bit_proofs_is_rejected(self, group, elgamal):
        proof = self._encrypt(group, elgamal, scalar(group, 4242))
        proof.chunks[1].bits.pop()
        t = Transcript(group)
        with pytest.raises(ValueError):
            proof.challenge_contribution(t, group, elgamal.params, elgamal.keypair.public_key)
        assert not proof.verify(group, scalar(group, 1), elgamal.params, elgamal.keypair.public_key)

    def test_chunk_size_defaults_to_config(self, group, monkeypatch):
        monkeypatch.setattr(config, 'chunk_bit_size', 4)
        assert ElgamalParams.generate_using_label(group, b"configured").chunk_bit_size == 4

    def test_dlog_table_is_kept_per_params(self, group):
        params = ElgamalParams.generate_using_label(group, b"table", chunk_bit_size=4)
        table = params.dlog_table(group)
        assert len(table) == 16
        assert params.dlog_table(group) is table
        fresh = ElgamalParams(params.g, 4)
        assert fresh == params
        assert fresh._dlog_table is None

    def test_decrypt(self, group, elgamal):
        m = group.hash(b"secret attribute", ZR)
        proof = self._encrypt(group, elgamal, m)
        assert proof.decrypt(group, elgamal.keypair.secret_key, elgamal.params) == m

    def test_decrypt_with_wrong_key(self, group, elgamal):
        proof = self._encrypt(group, elgamal, scalar(group, 123456789))
        with pytest.raises(DecryptionError):
            proof.decrypt(group, scalar(group, 5), elgamal.params)

    def test_chunks(self, group, elgamal):
        chunks = decompose(group, scalar(group, 0x0102), elgamal.params)
        assert chunks[:3] == [2, 1, 0]
        assert len(chunks) == elgamal.params.chunk_count(group)

    def test_unsupported_chunk_size(self, group):
        with pytest.raises(InvalidStatement):
            ElgamalParams.generate_using_label(group, b"x", chunk_bit_size=5)


class TestDecompositions:

    @pytest.mark.parametrize('span', [2, 3, 5, 8, 13, 64, 100])
    def test_sumset_covers_range(self, span):
        weights = cls_weights(0, span)
        for v in range(span):
            digits = sumset_digits(v, weights)
            assert sum(d * w for d, w in zip(digits, weights)) == v

    def test_sumset_of_single_value_range(self):
        assert cls_weights(4, 5) == []
        assert sumset_digits(0, []) == []

    def test_sumset_rejects_value_above_range(self):
        with pytest.raises(InvalidWitness):
            sumset_digits(8, cls_weights(0, 8))

    def test_ccs_digit_count(self):
        assert ccs_digit_count(4, 0, 4) == 1
        assert ccs_digit_count(4, 0, 5) == 2
        assert ccs_digit_count(16, 0, 2 ** 20) == 5

    def test_ccs_layout_offsets(self):
        lower, upper = ccs_layout(4, 10, 30)
        assert lower.weights == upper.weights == [1, 4, 16]
        assert lower.offset == -10
        assert upper.offset == 64 - 30

    def test_base_digits(self):
        assert base_digits(27, 4, 3) == [3, 2, 1]


class TestSetMembershipParams:

    def test_base_defaults_to_config(self, group, monkeypatch):
        monkeypatch.setattr(config, 'smc_base', 3)
        params, _ = SmcParams.generate_using_rng(group, b"configured", make_rng(6))
        assert params.base == 3
        assert len(params.ccs.signatures) == 3

    def test_base_below_two(self, group):
        with pytest.raises(ValueError):
            SmcParams.generate_using_rng(group, b"unary", make_rng(6), base=1)
