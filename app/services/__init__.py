"""
app/services package marker.

Services import validators, mappers and repositories; import them from
their modules directly to keep package initialisation free of cycles.
"""
