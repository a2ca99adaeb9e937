"""
fhirconnect - cross-reference navigation for FHIR-Connect mapping workspaces.
"""

__version__ = "0.1.0"
