"""Version information for the token risk engine."""

__version__ = "0.1.0"
__author__ = "Token Risk Engine Developers"
__email__ = "dev@token-risk.example"
