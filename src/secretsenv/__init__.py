"""
secretsenv - inject AWS Secrets Manager secrets into CI job environments.
"""

__version__ = "0.1.0"
