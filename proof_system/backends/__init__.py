"""
Backend Primitives
==================

The cryptographic proof systems the composite proof is assembled from. Each
module exposes a prover class (``*Protocol``) that commits at construction,
writes its commitment bytes with ``challenge_contribution(transcript)`` and
answers ``gen_proof(challenge)``, and a proof class with
``challenge_contribution(...)``, ``verify(..., challenge) -> bool`` and
``serialize`` / ``deserialize``.

Modules:
--------
- schnorr: multi-base Schnorr proofs, Pedersen commitment keys
- bbs_plus: BBS+ signatures and proof of knowledge
- ps_signature: Pointcheval-Sanders signatures and proof of knowledge
- accumulator: bilinear accumulator, (non-)membership witnesses and proofs
- elgamal: chunked ElGamal verifiable encryption
- bit_range: bit-decomposition range proof (64-bit bounds)
- set_membership: CCS / CLS set-membership range proofs, keyed verification
- inequality: proof that a committed value differs from a public one
"""
