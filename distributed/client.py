"""
Verification service client
Wraps the HTTP calls of the verifier server
"""

from typing import Optional

import requests

from proof_system import Proof
from proof_system.config import config
from proof_system.serialization import to_base64


class VerifierClient:
    """Verifier server client"""

    def __init__(self, base_url: str = None, timeout: float = 30):
        self.base_url = base_url or config.verifier_url
        self.timeout = timeout

    def health(self) -> dict:
        """Health check"""
        resp = requests.get(f"{self.base_url}/health", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def verify(self, spec_id: str, proof: Proof, group, nonce: Optional[bytes] = None) -> dict:
        """
        Send a proof for verification.

        Returns
        -------
        dict
            {"success", "valid", "failure", "statement_index"}; a 400 answer
            (malformed proof) is returned as its JSON body as well
        """
        resp = requests.post(f"{self.base_url}/verify/{spec_id}", json={
            'proof': to_base64(proof.to_bytes(group)),
            'nonce': to_base64(nonce) if nonce is not None else None,
        }, timeout=self.timeout)
        if resp.status_code != 400:
            resp.raise_for_status()
        return resp.json()
