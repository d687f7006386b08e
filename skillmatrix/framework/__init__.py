"""Application helpers around the matrix core.

- `skillmatrix.framework.config`: typed application settings
- `skillmatrix.framework.loader`: matrix document and skill directory discovery
- `skillmatrix.framework.prompts`: terminal rendering for the wizard
- `skillmatrix.framework.report`: pandas views for listing and CSV export
"""
