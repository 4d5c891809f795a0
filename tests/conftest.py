"""
Shared fixtures: one pairing group and one set of public parameters per
test session, and a freshly seeded rng per test.
"""

from types import SimpleNamespace

import pytest

from proof_system import make_rng, setup
from proof_system.backends.accumulator import (
    Accumulator,
    AccumulatorKeypair,
    AccumulatorParams,
    hash_element,
)
from proof_system.backends.bbs_plus import BBSPlusKeypair, BBSPlusSignature, BBSPlusSignatureParams
from proof_system.backends.elgamal import ElgamalKeypair, ElgamalParams
from proof_system.backends.ps_signature import PSKeypair, PSSignature, PSSignatureParams
from proof_system.backends.schnorr import PedersenCommitmentKey
from proof_system.backends.set_membership import SmcParams
from proof_system.utils import scalar

MESSAGE_COUNT = 5


@pytest.fixture(scope='session')
def group():
    return setup('BN254')['group']


@pytest.fixture
def rng():
    return make_rng(7)


@pytest.fixture(scope='session')
def bbs(group):
    """BBS+ keys and a signature on [1000, 1001, 1002, 1003, 30]; message 4 is an age."""
    rng = make_rng(1)
    params = BBSPlusSignatureParams.generate_using_label(group, b"test-bbs", MESSAGE_COUNT)
    keypair = BBSPlusKeypair.generate(group, params, rng)
    messages = [scalar(group, 1000 + i) for i in range(MESSAGE_COUNT - 1)] + [scalar(group, 30)]
    signature = BBSPlusSignature.new(group, messages, keypair.secret_key, params, rng)
    return SimpleNamespace(params=params, keypair=keypair, messages=messages, signature=signature)


@pytest.fixture(scope='session')
def ps(group):
    rng = make_rng(2)
    params = PSSignatureParams.generate_using_label(group, b"test-ps")
    keypair = PSKeypair.generate(group, params, MESSAGE_COUNT, rng)
    messages = [scalar(group, 2000 + i) for i in range(MESSAGE_COUNT - 1)] + [scalar(group, 30)]
    signature = PSSignature.new(group, messages, keypair.secret_key, params, rng)
    return SimpleNamespace(params=params, keypair=keypair, messages=messages, signature=signature)


@pytest.fixture(scope='session')
def accumulator(group):
    """Accumulator over hashes of b"member-0" .. b"member-4"."""
    rng = make_rng(3)
    params = AccumulatorParams.generate_using_label(group, b"test-acc")
    keypair = AccumulatorKeypair.generate(group, params, rng)
    acc = Accumulator(group, params)
    members = [hash_element(group, f"member-{i}".encode()) for i in range(5)]
    for y in members:
        acc.add(y, keypair.secret_key)
    return SimpleNamespace(params=params, keypair=keypair, acc=acc, members=members,
                           non_member=hash_element(group, b"outsider"))


@pytest.fixture(scope='session')
def comm_key(group):
    return PedersenCommitmentKey.generate_using_label(group, b"test-comm")


@pytest.fixture(scope='session')
def elgamal(group):
    params = ElgamalParams.generate_using_label(group, b"test-ve", chunk_bit_size=8)
    keypair = ElgamalKeypair.generate(group, params, make_rng(4))
    return SimpleNamespace(params=params, keypair=keypair)


@pytest.fixture(scope='session')
def smc(group):
    params, secret_key = SmcParams.generate_using_rng(group, b"test-smc", make_rng(5), base=4)
    return SimpleNamespace(params=params, secret_key=secret_key)
