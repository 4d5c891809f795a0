"""
Proof system configuration
Defaults are read from environment variables once, at import time.
"""

import logging
import os

# Pairing curve
DEFAULT_PAIRING_CURVE = os.getenv('PAIRING_CURVE', 'BN254')

# Logging
DEFAULT_LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING')

# Verifiable encryption: bits per ciphertext chunk (4, 8 or 16)
DEFAULT_CHUNK_BIT_SIZE = int(os.getenv('CHUNK_BIT_SIZE', 8))

# Set-membership range proofs: digit base of generated params
SMC_DEFAULT_BASE = int(os.getenv('SMC_BASE', 16))

# Verification service
DEFAULT_VERIFIER_HOST = os.getenv('VERIFIER_HOST', 'localhost')
DEFAULT_VERIFIER_PORT = int(os.getenv('VERIFIER_PORT', 5003))


class Config:
    """Configuration holder"""

    def __init__(self):
        self.pairing_curve = DEFAULT_PAIRING_CURVE
        self.log_level = DEFAULT_LOG_LEVEL
        self.chunk_bit_size = DEFAULT_CHUNK_BIT_SIZE
        self.smc_base = SMC_DEFAULT_BASE
        self.verifier_host = DEFAULT_VERIFIER_HOST
        self.verifier_port = DEFAULT_VERIFIER_PORT

    @property
    def verifier_url(self):
        return f"http://{self.verifier_host}:{self.verifier_port}"

    def configure_logging(self):
        """Install a basic handler on the package logger at the configured level."""
        logger = logging.getLogger('proof_system')
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
            logger.addHandler(handler)
        logger.setLevel(self.log_level.upper())


# Global config instance
config = Config()
