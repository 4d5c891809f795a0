"""
Composite proofs end to end: completeness for every statement kind, linked
witnesses, every verification failure kind, nonce binding, determinism and
the proof wire format.
"""

import pytest

from proof_system import (
    EqualWitnesses,
    Inline,
    InvalidData,
    MetaStatements,
    Proof,
    ProofSpec,
    StatementKind,
    Statements,
    VerificationFailure,
    Witnesses,
    make_rng,
)
from proof_system.backends import elgamal as elgamal_backend
from proof_system.backends.accumulator import Accumulator
from proof_system.backends.bbs_plus import BBSPlusSignature
from proof_system.backends.set_membership import CCSRangeProof, CLSRangeProof
from proof_system.errors import DecryptionError, InvalidEqualWitnesses, InvalidStatement, InvalidWitness
from proof_system.serialization import scalar_size
from proof_system.statement import (
    AccumulatorMembership,
    AccumulatorNonMembership,
    BoundCheckBits,
    BoundCheckSmc,
    BoundCheckSmcWithKV,
    PedersenCommitment,
    PoKBBSSignatureG1,
    PoKPSSignature,
    PublicInequality,
    VerifiableEncryption,
)
from proof_system.utils import scalar
from proof_system.witness import (
    AccumulatorMembershipWitness,
    AccumulatorNonMembershipWitness,
    BoundCheckWitness,
    PedersenCommitmentWitness,
    PoKBBSSignatureG1Witness,
    PoKPSSignatureWitness,
    PublicInequalityWitness,
    VerifiableEncryptionWitness,
)

AGE_INDEX = 4


def bbs_pair(bbs, revealed=(0, 1), signature=None, messages=None):
    messages = messages or bbs.messages
    statement = PoKBBSSignatureG1(Inline(bbs.params), Inline(bbs.keypair.public_key),
                                  {i: messages[i] for i in revealed})
    witness = PoKBBSSignatureG1Witness(signature or bbs.signature,
                                       {i: m for i, m in enumerate(messages) if i not in revealed})
    return statement, witness


def ps_pair(ps, revealed=(2,)):
    statement = PoKPSSignature(Inline(ps.params), Inline(ps.keypair.public_key),
                               {i: ps.messages[i] for i in revealed})
    witness = PoKPSSignatureWitness(ps.signature,
                                    {i: m for i, m in enumerate(ps.messages) if i not in revealed})
    return statement, witness


def prove_and_verify(group, statements, witnesses, meta=None, rng=None, verifier_statements=None):
    spec = ProofSpec(group, Statements(statements), meta)
    proof = Proof.new(spec, Witnesses(witnesses), rng=rng or make_rng(21))
    verifier_spec = spec
    if verifier_statements is not None:
        verifier_spec = ProofSpec(group, Statements(verifier_statements), meta)
    return proof, proof.verify(verifier_spec)


def smc_specs(group, smc, keyed, min_value, max_value):
    """Prover and verifier specs for one set-membership range statement."""
    if not keyed:
        spec = ProofSpec(group, Statements([BoundCheckSmc(min_value, max_value, Inline(smc.params))]))
        return spec, spec
    prover = BoundCheckSmcWithKV(min_value, max_value, Inline(smc.params))
    verifier = BoundCheckSmcWithKV(min_value, max_value, Inline(smc.params), Inline(smc.secret_key))
    return ProofSpec(group, Statements([prover])), ProofSpec(group, Statements([verifier]))


class TestCompleteness:
    """Every statement kind on its own."""

    def test_bbs_plus(self, group, bbs):
        statement, witness = bbs_pair(bbs)
        _, result = prove_and_verify(group, [statement], [witness])
        assert result.valid

    def test_bbs_plus_nothing_revealed(self, group, bbs):
        statement, witness = bbs_pair(bbs, revealed=())
        _, result = prove_and_verify(group, [statement], [witness])
        assert result

    def test_bbs_plus_wrong_revealed_message(self, group, bbs):
        statement, witness = bbs_pair(bbs)
        wrong = PoKBBSSignatureG1(statement.params, statement.public_key,
                                  {0: scalar(group, 1), 1: bbs.messages[1]})
        _, result = prove_and_verify(group, [statement], [witness], verifier_statements=[wrong])
        assert not result
        assert result.failure is VerificationFailure.CHALLENGE_MISMATCH

    def test_ps(self, group, ps):
        statement, witness = ps_pair(ps)
        _, result = prove_and_verify(group, [statement], [witness])
        assert result.valid

    def test_accumulator_membership(self, group, accumulator):
        a = accumulator
        y = a.members[3]
        statement = AccumulatorMembership(Inline(a.params), Inline(a.keypair.public_key), a.acc.value)
        witness = AccumulatorMembershipWitness(y, a.acc.membership_witness(y, a.keypair.secret_key))
        _, result = prove_and_verify(group, [statement], [witness])
        assert result.valid

    def test_accumulator_non_membership(self, group, accumulator):
        a = accumulator
        keys = a.acc.server_keys(a.keypair.secret_key)
        statement = AccumulatorNonMembership(Inline(a.params), Inline(a.keypair.public_key),
                                             a.acc.value)
        witness = AccumulatorNonMembershipWitness(
            a.non_member, a.acc.non_membership_witness_from_server_keys(a.non_member, keys)
        )
        _, result = prove_and_verify(group, [statement], [witness])
        assert result.valid

    def test_non_membership_in_empty_accumulator(self, group, accumulator):
        a = accumulator
        empty = Accumulator(group, a.params)
        statement = AccumulatorNonMembership(Inline(a.params), Inline(a.keypair.public_key),
                                             empty.value)
        witness = AccumulatorNonMembershipWitness(
            a.non_member, empty.non_membership_witness(a.non_member, a.keypair.secret_key)
        )
        _, result = prove_and_verify(group, [statement], [witness])
        assert result.valid

    def test_membership_against_stale_value(self, group, accumulator):
        a = accumulator
        y = a.members[0]
        statement = AccumulatorMembership(Inline(a.params), Inline(a.keypair.public_key), a.acc.value)
        witness = AccumulatorMembershipWitness(y, a.acc.membership_witness(y, a.keypair.secret_key))
        stale = AccumulatorMembership(statement.params, statement.public_key, a.params.g)
        _, result = prove_and_verify(group, [statement], [witness], verifier_statements=[stale])
        assert not result

    def test_pedersen(self, group, comm_key):
        messages = [scalar(group, 3), scalar(group, 4)]
        statement = PedersenCommitment(Inline(comm_key), comm_key.commit(group, messages))
        _, result = prove_and_verify(group, [statement], [PedersenCommitmentWitness(messages)])
        assert result.valid

    def test_verifiable_encryption(self, group, elgamal):
        statement = VerifiableEncryption(Inline(elgamal.params), Inline(elgamal.keypair.public_key))
        m = scalar(group, 987654321)
        proof, result = prove_and_verify(group, [statement], [VerifiableEncryptionWitness(m)])
        assert result.valid
        spec = ProofSpec(group, Statements([statement]))
        assert proof.get_decrypted_value(spec, 0, elgamal.keypair.secret_key) == m

    def test_verifiable_encryption_with_oversized_chunk(self, group, elgamal, monkeypatch):
        """
        Workflow:
        1. Put the whole value in chunk 0 and zeros in the other chunks
        2. The combined ciphertext still encrypts the value
        3. Chunk 0 is not below 2^chunk_bit_size, so verification fails
        """
        def one_chunk(group, m, params):
            return [int(m)] + [0] * (params.chunk_count(group) - 1)

        monkeypatch.setattr(elgamal_backend, 'decompose', one_chunk)
        statement = VerifiableEncryption(Inline(elgamal.params), Inline(elgamal.keypair.public_key))
        proof, result = prove_and_verify(group, [statement], [VerifiableEncryptionWitness(scalar(group, 1000))])
        assert result.failure is VerificationFailure.STATEMENT
        assert result.statement_index == 0
        with pytest.raises(DecryptionError):
            proof.get_decrypted_value(ProofSpec(group, Statements([statement])), 0,
                                      elgamal.keypair.secret_key)

    @pytest.mark.parametrize('min_value,max_value,value', [
        (18, 65, 18), (18, 65, 64), (0, 1, 0), (0, 2 ** 64 - 1, 2 ** 63 + 5),
    ])
    def test_bound_check_bits(self, group, comm_key, min_value, max_value, value):
        statement = BoundCheckBits(min_value, max_value, Inline(comm_key))
        _, result = prove_and_verify(group, [statement], [BoundCheckWitness(scalar(group, value))])
        assert result.valid

    def test_bound_check_bits_out_of_range(self, group, comm_key):
        statement = BoundCheckBits(18, 65, Inline(comm_key))
        spec = ProofSpec(group, Statements([statement]))
        with pytest.raises(InvalidWitness):
            Proof.new(spec, Witnesses([BoundCheckWitness(scalar(group, 65))]), rng=make_rng(1))

    @pytest.mark.parametrize('min_value,max_value,value,inner', [
        (18, 65, 30, CLSRangeProof),
        (5, 6, 5, CLSRangeProof),
        (0, 2 ** 21, 2 ** 20 + 3, CCSRangeProof),
    ])
    def test_bound_check_smc(self, group, smc, min_value, max_value, value, inner):
        statement = BoundCheckSmc(min_value, max_value, Inline(smc.params))
        proof, result = prove_and_verify(group, [statement], [BoundCheckWitness(scalar(group, value))])
        assert result.valid
        assert isinstance(proof.statement_proofs[0].payload, inner)

    def test_bound_check_smc_keyed_verification(self, group, smc):
        prover_statement = BoundCheckSmcWithKV(100, 2 ** 22, Inline(smc.params))
        verifier_statement = BoundCheckSmcWithKV(100, 2 ** 22, Inline(smc.params), Inline(smc.secret_key))
        witness = BoundCheckWitness(scalar(group, 4000))
        _, result = prove_and_verify(group, [prover_statement], [witness],
                                     verifier_statements=[verifier_statement])
        assert result.valid

    def test_bound_check_smc_keyed_small_range(self, group, smc):
        prover_statement = BoundCheckSmcWithKV(18, 65, Inline(smc.params))
        verifier_statement = BoundCheckSmcWithKV(18, 65, Inline(smc.params), Inline(smc.secret_key))
        _, result = prove_and_verify(group, [prover_statement], [BoundCheckWitness(scalar(group, 40))],
                                     verifier_statements=[verifier_statement])
        assert result.valid

    def test_keyed_verification_needs_secret_key(self, group, smc):
        statement = BoundCheckSmcWithKV(18, 65, Inline(smc.params))
        _, result = prove_and_verify(group, [statement], [BoundCheckWitness(scalar(group, 40))])
        assert result.failure is VerificationFailure.STATEMENT
        assert result.statement_index == 0

    def test_public_inequality(self, group, comm_key):
        statement = PublicInequality(scalar(group, 5), Inline(comm_key))
        _, result = prove_and_verify(group, [statement], [PublicInequalityWitness(scalar(group, 6))])
        assert result.valid

    def test_public_inequality_with_equal_value(self, group, comm_key):
        statement = PublicInequality(scalar(group, 5), Inline(comm_key))
        spec = ProofSpec(group, Statements([statement]))
        with pytest.raises(InvalidWitness):
            Proof.new(spec, Witnesses([PublicInequalityWitness(scalar(group, 5))]), rng=make_rng(1))


class TestWitnessEquality:

    def _age_statements(self, group, bbs, comm_key, age):
        sig_statement, sig_witness = bbs_pair(bbs)
        range_statement = BoundCheckBits(18, 65, Inline(comm_key))
        meta = MetaStatements([EqualWitnesses([(0, AGE_INDEX), (1, 0)])])
        return [sig_statement, range_statement], [sig_witness, BoundCheckWitness(scalar(group, age))], meta

    def test_linked_age(self, group, bbs, comm_key):
        """
        Workflow:
        1. Prove possession of a credential revealing messages 0 and 1
        2. Prove the hidden age (message 4) is in [18, 65)
        3. Link both through one equality group
        """
        statements, witnesses, meta = self._age_statements(group, bbs, comm_key, 30)
        proof, result = prove_and_verify(group, statements, witnesses, meta)
        assert result.valid
        assert (proof.statement_proofs[0].payload.get_resp_for_message(AGE_INDEX, {0, 1})
                == proof.statement_proofs[1].payload.get_resp_for_value())

    def test_different_values_fail_equality(self, group, bbs, comm_key):
        statements, witnesses, meta = self._age_statements(group, bbs, comm_key, 31)
        _, result = prove_and_verify(group, statements, witnesses, meta)
        assert not result
        assert result.failure is VerificationFailure.WITNESS_EQUALITY

    def test_unlinked_different_values_verify(self, group, bbs, comm_key):
        statements, witnesses, _ = self._age_statements(group, bbs, comm_key, 31)
        _, result = prove_and_verify(group, statements, witnesses)
        assert result.valid

    def test_every_kind_linked(self, group, bbs, ps, accumulator, comm_key, elgamal, smc):
        """
        One credential whose message 0 is an accumulator member and whose
        message 4 is an age linked to a PS credential, a Pedersen commitment,
        a verifiable encryption and three range proofs.
        """
        rng = make_rng(99)
        a = accumulator
        member = a.members[4]
        messages = [member] + list(bbs.messages[1:])
        signature = BBSPlusSignature.new(group, messages, bbs.keypair.secret_key, bbs.params, rng)
        age = messages[AGE_INDEX]
        blinding = scalar(group, 777)

        bbs_statement, bbs_witness = bbs_pair(bbs, revealed=(1,), signature=signature,
                                              messages=messages)
        ps_statement, ps_witness = ps_pair(ps)
        statements = [
            bbs_statement,
            ps_statement,
            AccumulatorMembership(Inline(a.params), Inline(a.keypair.public_key), a.acc.value),
            PedersenCommitment(Inline(comm_key), comm_key.commit(group, [age, blinding])),
            VerifiableEncryption(Inline(elgamal.params), Inline(elgamal.keypair.public_key)),
            BoundCheckBits(18, 65, Inline(comm_key)),
            BoundCheckSmc(18, 65, Inline(smc.params)),
            BoundCheckSmc(0, 2 ** 24, Inline(smc.params)),
            PublicInequality(scalar(group, 17), Inline(comm_key)),
            AccumulatorNonMembership(Inline(a.params), Inline(a.keypair.public_key), a.acc.value),
        ]
        witnesses = [
            bbs_witness,
            ps_witness,
            AccumulatorMembershipWitness(member, a.acc.membership_witness(member, a.keypair.secret_key)),
            PedersenCommitmentWitness([age, blinding]),
            VerifiableEncryptionWitness(age),
            BoundCheckWitness(age),
            BoundCheckWitness(age),
            BoundCheckWitness(age),
            PublicInequalityWitness(age),
            AccumulatorNonMembershipWitness(
                a.non_member, a.acc.non_membership_witness(a.non_member, a.keypair.secret_key)
            ),
        ]
        meta = MetaStatements([
            EqualWitnesses([(0, AGE_INDEX), (1, AGE_INDEX), (3, 0), (4, 0), (5, 0), (6, 0),
                            (7, 0), (8, 0)]),
            EqualWitnesses([(0, 0), (2, 0)]),
        ])
        spec = ProofSpec(group, Statements(statements), meta, context=b"every-kind")
        proof = Proof.new(spec, Witnesses(witnesses), nonce=b"nonce", rng=rng)
        assert [sp.kind for sp in proof.statement_proofs] == [s.KIND for s in statements]

        decoded = Proof.from_bytes(group, proof.to_bytes(group))
        assert decoded.to_bytes(group) == proof.to_bytes(group)
        assert decoded.verify(spec, nonce=b"nonce").valid


class TestEqualityConstraints:

    def test_single_ref(self):
        with pytest.raises(InvalidEqualWitnesses):
            EqualWitnesses([(0, 1)])

    def test_duplicate_refs_collapse(self):
        with pytest.raises(InvalidEqualWitnesses):
            EqualWitnesses([(0, 1), (0, 1)])

    def test_revealed_slot(self, group, bbs, comm_key):
        sig_statement, _ = bbs_pair(bbs)
        meta = MetaStatements([EqualWitnesses([(0, 0), (1, 0)])])
        spec = ProofSpec(group, Statements([sig_statement, BoundCheckBits(0, 10, Inline(comm_key))]), meta)
        with pytest.raises(InvalidEqualWitnesses):
            spec.validate()

    def test_missing_statement(self, group, comm_key):
        meta = MetaStatements([EqualWitnesses([(0, 0), (5, 0)])])
        spec = ProofSpec(group, Statements([BoundCheckBits(0, 10, Inline(comm_key))]), meta)
        with pytest.raises(InvalidEqualWitnesses):
            spec.validate()

    def test_overlapping_groups(self, group, comm_key):
        statements = Statements([BoundCheckBits(0, 10, Inline(comm_key)) for _ in range(3)])
        meta = MetaStatements([EqualWitnesses([(0, 0), (1, 0)]), EqualWitnesses([(1, 0), (2, 0)])])
        with pytest.raises(InvalidEqualWitnesses):
            ProofSpec(group, statements, meta).validate()

    def test_empty_spec(self, group):
        with pytest.raises(InvalidStatement):
            ProofSpec(group, Statements()).validate()


@pytest.fixture
def pedersen_spec(group, comm_key):
    messages = [scalar(group, 8), scalar(group, 9)]
    statements = Statements([
        PedersenCommitment(Inline(comm_key), comm_key.commit(group, messages)),
        PublicInequality(scalar(group, 1), Inline(comm_key)),
    ])
    witnesses = Witnesses([PedersenCommitmentWitness(messages), PublicInequalityWitness(messages[0])])
    meta = MetaStatements([EqualWitnesses([(0, 0), (1, 0)])])
    return ProofSpec(group, statements, meta), witnesses


class TestVerificationFailures:

    def test_nonce_is_bound(self, pedersen_spec):
        spec, witnesses = pedersen_spec
        proof = Proof.new(spec, witnesses, nonce=b"n1", rng=make_rng(3))
        assert proof.verify(spec, nonce=b"n1")
        for nonce in (b"n2", None):
            result = proof.verify(spec, nonce=nonce)
            assert result.failure is VerificationFailure.CHALLENGE_MISMATCH

    def test_context_is_bound(self, group, pedersen_spec):
        spec, witnesses = pedersen_spec
        proof = Proof.new(spec, witnesses, rng=make_rng(3))
        other = ProofSpec(group, spec.statements, spec.meta_statements, context=b"other")
        assert proof.verify(other).failure is VerificationFailure.CHALLENGE_MISMATCH

    def test_tampered_challenge(self, group, pedersen_spec):
        spec, witnesses = pedersen_spec
        proof = Proof.new(spec, witnesses, rng=make_rng(3))
        proof.challenge = proof.challenge + scalar(group, 1)
        assert proof.verify(spec).failure is VerificationFailure.CHALLENGE_MISMATCH

    def test_tampered_response(self, group, pedersen_spec):
        spec, witnesses = pedersen_spec
        proof = Proof.new(spec, witnesses, rng=make_rng(3))
        responses = proof.statement_proofs[0].payload.response.responses
        responses[1] = responses[1] + scalar(group, 1)
        result = proof.verify(spec)
        assert result.failure is VerificationFailure.STATEMENT
        assert result.statement_index == 0

    def test_missing_statement_proof(self, pedersen_spec):
        spec, witnesses = pedersen_spec
        proof = Proof.new(spec, witnesses, rng=make_rng(3))
        proof.statement_proofs.pop()
        assert proof.verify(spec).failure is VerificationFailure.PROOF_LENGTH

    def test_swapped_statement_proofs(self, pedersen_spec):
        spec, witnesses = pedersen_spec
        proof = Proof.new(spec, witnesses, rng=make_rng(3))
        proof.statement_proofs.reverse()
        result = proof.verify(spec)
        assert result.failure is VerificationFailure.STATEMENT
        assert result.statement_index == 0


class TestDeterminism:

    def test_same_seed_same_proof(self, group, pedersen_spec):
        spec, witnesses = pedersen_spec
        first = Proof.new(spec, witnesses, nonce=b"n", rng=make_rng(5)).to_bytes(group)
        second = Proof.new(spec, witnesses, nonce=b"n", rng=make_rng(5)).to_bytes(group)
        assert first == second

    def test_different_seed_different_proof(self, group, pedersen_spec):
        spec, witnesses = pedersen_spec
        first = Proof.new(spec, witnesses, rng=make_rng(5)).to_bytes(group)
        second = Proof.new(spec, witnesses, rng=make_rng(6)).to_bytes(group)
        assert first != second


class TestWireFormat:

    def test_round_trip(self, group, pedersen_spec):
        spec, witnesses = pedersen_spec
        proof = Proof.new(spec, witnesses, rng=make_rng(3))
        decoded = Proof.from_bytes(group, proof.to_bytes(group))
        assert decoded == proof
        assert decoded.verify(spec)

    @pytest.mark.parametrize('keyed', [False, True])
    @pytest.mark.parametrize('min_value,max_value,inner', [
        (18, 65, CLSRangeProof),
        (0, 2 ** 21, CCSRangeProof),
    ])
    def test_round_trip_smc_inner_tags(self, group, smc, keyed, min_value, max_value, inner):
        prover_spec, verifier_spec = smc_specs(group, smc, keyed, min_value, max_value)
        proof = Proof.new(prover_spec, Witnesses([BoundCheckWitness(scalar(group, 20))]), rng=make_rng(8))
        data = proof.to_bytes(group)
        decoded = Proof.from_bytes(group, data)
        assert decoded == proof
        assert type(decoded.statement_proofs[0].payload) is inner
        assert decoded.to_bytes(group) == data
        assert decoded.verify(verifier_spec).valid

    @pytest.mark.parametrize('keyed', [False, True])
    @pytest.mark.parametrize('inner', [2, 0xFF])
    def test_unknown_inner_tag(self, group, smc, keyed, inner):
        prover_spec, _ = smc_specs(group, smc, keyed, 18, 65)
        data = bytearray(Proof.new(prover_spec, Witnesses([BoundCheckWitness(scalar(group, 20))]),
                                   rng=make_rng(8)).to_bytes(group))
        offset = scalar_size(group) + 2
        assert data[offset - 1] == prover_spec.statements[0].KIND
        data[offset] = inner
        with pytest.raises(InvalidData):
            Proof.from_bytes(group, bytes(data))

    def test_truncated_and_trailing(self, group, pedersen_spec):
        spec, witnesses = pedersen_spec
        data = Proof.new(spec, witnesses, rng=make_rng(3)).to_bytes(group)
        with pytest.raises(InvalidData):
            Proof.from_bytes(group, data[:-1])
        with pytest.raises(InvalidData):
            Proof.from_bytes(group, data + b"\x00")

    def test_empty_input(self, group):
        with pytest.raises(InvalidData):
            Proof.from_bytes(group, b"")
