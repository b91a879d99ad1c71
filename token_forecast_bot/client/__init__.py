"""
Prediction service client module.

HTTP client for the remote prediction model plus the standalone retry policy
it uses for transient failures.
"""
