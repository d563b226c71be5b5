from .identity import AuthResult, FederatedProfile, VerifiedCaller

__all__ = ["AuthResult", "FederatedProfile", "VerifiedCaller"]
