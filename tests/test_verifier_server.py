"""
HTTP verification service, exercised through the Flask test client.
"""

from unittest import mock

import pytest

from distributed.client import VerifierClient
from distributed.verifier_server import create_app
from proof_system import (
    EqualWitnesses,
    Inline,
    MetaStatements,
    Proof,
    ProofSpec,
    Statements,
    Witnesses,
    make_rng,
)
from proof_system.serialization import from_base64, to_base64
from proof_system.statement import BoundCheckBits, PoKBBSSignatureG1
from proof_system.utils import scalar
from proof_system.witness import BoundCheckWitness, PoKBBSSignatureG1Witness


@pytest.fixture
def age_spec(group, bbs, comm_key):
    statements = Statements([
        PoKBBSSignatureG1(Inline(bbs.params), Inline(bbs.keypair.public_key), {0: bbs.messages[0]}),
        BoundCheckBits(18, 65, Inline(comm_key)),
    ])
    meta = MetaStatements([EqualWitnesses([(0, 4), (1, 0)])])
    return ProofSpec(group, statements, meta)


@pytest.fixture
def age_proof(group, bbs, age_spec):
    witnesses = Witnesses([
        PoKBBSSignatureG1Witness(bbs.signature, {i: m for i, m in enumerate(bbs.messages) if i != 0}),
        BoundCheckWitness(bbs.messages[4]),
    ])
    return Proof.new(age_spec, witnesses, nonce=b"server-nonce", rng=make_rng(13))


@pytest.fixture
def client(age_spec):
    app = create_app({'age': age_spec})
    app.config['TESTING'] = True
    return app.test_client()


class TestVerifierServer:

    def test_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json() == {'status': 'ok', 'specs': ['age']}

    def test_valid_proof(self, client, group, age_proof):
        resp = client.post('/verify/age', json={
            'proof': to_base64(age_proof.to_bytes(group)),
            'nonce': to_base64(b"server-nonce"),
        })
        assert resp.status_code == 200
        assert resp.get_json() == {'success': True, 'valid': True, 'failure': None,
                                   'statement_index': None}

    def test_missing_nonce(self, client, group, age_proof):
        resp = client.post('/verify/age', json={
            'proof': to_base64(age_proof.to_bytes(group)),
            'nonce': None,
        })
        body = resp.get_json()
        assert resp.status_code == 200
        assert body['valid'] is False
        assert body['failure'] == 'challenge_mismatch'

    def test_malformed_proof(self, client, group, age_proof):
        data = age_proof.to_bytes(group)[:-3]
        resp = client.post('/verify/age', json={'proof': to_base64(data), 'nonce': None})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body['success'] is False
        assert body['error_kind'] == 'InvalidData'

    def test_bad_base64(self, client):
        resp = client.post('/verify/age', json={'proof': '***', 'nonce': None})
        assert resp.status_code == 400
        assert resp.get_json()['error_kind'] == 'InvalidData'

    def test_missing_body(self, client):
        resp = client.post('/verify/age', data='not json')
        assert resp.status_code == 400

    def test_unknown_spec(self, client, group, age_proof):
        resp = client.post('/verify/other', json={'proof': to_base64(age_proof.to_bytes(group))})
        assert resp.status_code == 404


class TestVerifierClient:

    def test_verify_posts_encoded_proof(self, group, age_proof):
        response = mock.Mock(status_code=200)
        response.json.return_value = {'success': True, 'valid': True, 'failure': None,
                                      'statement_index': None}
        with mock.patch('distributed.client.requests.post', return_value=response) as post:
            result = VerifierClient('http://verifier').verify('age', age_proof, group, nonce=b"n")
        assert result['valid'] is True
        url = post.call_args[0][0]
        body = post.call_args[1]['json']
        assert url == 'http://verifier/verify/age'
        assert body['nonce'] == to_base64(b"n")
        assert Proof.from_bytes(group, from_base64(body['proof'])) == age_proof
