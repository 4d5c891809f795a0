"""HTTP verification service for composite proofs."""
