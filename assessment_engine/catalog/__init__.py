"""
Bundled assessment catalog: questionnaire, category weights, signal mappings
and action templates, shipped as JSON under ``catalog/data/``.

Entry point: ``loader.load_catalog(data_dir=None) -> AssessmentCatalog``.
"""
