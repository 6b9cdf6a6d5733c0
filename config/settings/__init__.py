"""Settings package for the scheduling project.

`base.py` contains common configuration shared across environments.
`dev.py`, `prod.py` and `test.py` extend it with environment specific
overrides.
"""
