"""Bearer token verification for externally issued sessions."""
