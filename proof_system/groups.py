"""
Group Initialization and Setup
===============================

This module handles the initialization of the Type-3 asymmetric pairing
groups every backend primitive works in, and the derivation of public
generators from labels.

According to charm-crypto documentation (https://jhuisi.github.io/charm/tutorial.html):
- PairingGroup('BN254') provides asymmetric Type-3 pairings with a 254-bit base field
- Alternative curves: 'MNT224', 'SS512' (symmetric, but can be used)
- G1, G2 are the source groups; GT is the target group
- Pairing operation: pair(g1_elem, g2_elem) -> GT element
"""

import logging
import random
import secrets
from typing import List

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, G2, GT, pair

from .config import config

logger = logging.getLogger(__name__)


def setup(group_name: str = None) -> dict:
    """
    Initialize the pairing group used by all statements of a proof.

    Parameters
    ----------
    group_name : str, optional
        The pairing curve identifier. Defaults to ``config.pairing_curve``.
        Supported curves:
        - 'BN254': Asymmetric Type-3, 254-bit base field (preferred)
        - 'MNT224': Asymmetric Type-3, 224-bit base field
        - 'SS512': Symmetric, 512-bit base field (last resort)

    Returns
    -------
    dict
        A dictionary containing:
        - 'group': The PairingGroup object
        - 'group_name': The name of the curve used
        - 'G1', 'G2', 'GT', 'ZR': The charm type constants
        - 'pair': The pairing function

    Notes
    -----
    Prover and verifier must use the same curve; proofs carry no curve tag.

    Examples
    --------
    >>> params = setup('BN254')
    >>> group = params['group']
    """
    if group_name is None:
        group_name = config.pairing_curve
    try:
        group = PairingGroup(group_name)
    except Exception as e:
        logger.warning("%s not available (%s), falling back to BN254", group_name, e)
        try:
            group = PairingGroup('BN254')
            group_name = 'BN254'
        except Exception as e2:
            logger.warning("BN254 not available (%s), falling back to SS512", e2)
            group = PairingGroup('SS512')
            group_name = 'SS512'

    return {
        'group': group,
        'group_name': group_name,
        'G1': G1,
        'G2': G2,
        'GT': GT,
        'ZR': ZR,
        'pair': pair,
    }


def hash_to_generators(group: PairingGroup, label: bytes, count: int, kind=G1) -> List:
    """
    Derive ``count`` independent generators of ``kind`` from a public label.

    Parameters
    ----------
    group : PairingGroup
        The pairing group
    label : bytes
        Domain label; different labels give unrelated generators
    count : int
        Number of generators
    kind : int
        G1 or G2

    Returns
    -------
    List
        ``[H(label || 0), ..., H(label || count-1)]`` hashed onto the curve

    Notes
    -----
    Nobody knows discrete-log relations between the outputs, which is what
    Pedersen commitments and signature parameters require.
    """
    prefix = b"G1" if kind == G1 else b"G2"
    return [
        group.hash(prefix + b"|" + label + b"|" + i.to_bytes(4, 'big'), kind)
        for i in range(count)
    ]


def make_rng(seed: int = None):
    """
    Return the randomness source handed to provers.

    With a seed this is a reproducible ``random.Random`` (tests, transcript
    determinism checks); without one it is the operating system CSPRNG.
    """
    if seed is not None:
        return random.Random(seed)
    return secrets.SystemRandom()
