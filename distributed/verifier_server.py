"""
Proof verification HTTP server
Verifies composite proofs against proof specs registered at startup
"""

import logging
from typing import Dict

from flask import Flask, request, jsonify

from proof_system import Proof, ProofSpec
from proof_system.config import config
from proof_system.errors import ProofSystemError
from proof_system.serialization import from_base64

logger = logging.getLogger(__name__)


def create_app(specs: Dict[str, ProofSpec]) -> Flask:
    """
    Build the verifier app.

    Parameters
    ----------
    specs : Dict[str, ProofSpec]
        Proof specs by id; ``POST /verify/<spec_id>`` checks proofs against them

    Returns
    -------
    Flask
    """
    app = Flask(__name__)
    app.config['PROOF_SPECS'] = dict(specs)

    @app.route('/health', methods=['GET'])
    def health():
        """Health check"""
        return jsonify({'status': 'ok', 'specs': sorted(app.config['PROOF_SPECS'])})

    @app.route('/verify/<spec_id>', methods=['POST'])
    def verify(spec_id):
        """Verify a proof; body is {"proof": base64, "nonce": base64 | null}"""
        spec = app.config['PROOF_SPECS'].get(spec_id)
        if spec is None:
            return jsonify({'success': False, 'error': f"Unknown proof spec {spec_id!r}"}), 404

        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get('proof'), str):
            return jsonify({'success': False, 'error': 'Request body must be JSON with a "proof" string',
                            'error_kind': 'InvalidData'}), 400

        try:
            proof_bytes = from_base64(data['proof'])
            nonce = data.get('nonce')
            if nonce is not None:
                nonce = from_base64(nonce)
            proof = Proof.from_bytes(spec.group, proof_bytes)
        except ProofSystemError as e:
            logger.info("Rejected malformed proof for spec %s: %s", spec_id, e)
            return jsonify({'success': False, 'error': str(e), 'error_kind': type(e).__name__}), 400

        try:
            result = proof.verify(spec, nonce=nonce)
        except ProofSystemError as e:
            logger.exception("Proof spec %s is unusable", spec_id)
            return jsonify({'success': False, 'error': str(e), 'error_kind': type(e).__name__}), 500

        return jsonify({
            'success': True,
            'valid': result.valid,
            'failure': result.failure.value if result.failure else None,
            'statement_index': result.statement_index,
        })

    return app


def main(specs: Dict[str, ProofSpec]):
    """Start the verifier server"""
    config.configure_logging()
    host = config.verifier_host
    port = config.verifier_port
    logger.info("Starting verifier server on %s:%s", host, port)
    create_app(specs).run(host=host, port=port, debug=False)
