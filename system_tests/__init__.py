"""
Live system tests for the thumbnail catalog action.

This package drives a real platform through its CLI and a real Cloudant
account through HTTP.

Key Features:
- Platform and document store health gate
- Per-class database lifecycle
- Scoped, uniquely named platform resources
- Activation log polling with failure reports
"""
