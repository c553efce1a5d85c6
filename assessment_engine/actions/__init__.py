"""
Action generation: ranked signals → bounded, deduplicated improvement actions.

Modules
-------
instantiator : InstantiatedAction + ActionInstantiator (budgeted template pick)
formatter    : InstantiatedAction → PersistedAction rows for the store
"""
