"""
Pydantic models for the assessment engine.

Modules
-------
questionnaire : Question, Section, Questionnaire (the static questionnaire).
catalog       : CategoryWeightTable, SignalMappingTable, ActionTemplateCatalog
                (static lookup tables consumed by the engines).
action        : PersistedAction, AssessmentRecord (rows written to the store).

Every model except ``AssessmentRecord`` is frozen: catalog data is loaded once
and read-only thereafter, and persisted actions are immutable values.
"""
