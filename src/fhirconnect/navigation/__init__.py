"""
Cross-reference navigation over FHIR-Connect mapping workspaces.

Public entry points:
- classify_click_site / classify_key_path: interpret the clicked key
- find_candidates: documents referencing or declaring a symbol
- locate_anchor: exact line/column of the match inside a candidate
"""
from fhirconnect.navigation.click_site import (
    ClickSite,
    NavigationClassifier,
    classify_click_site,
    classify_key_path,
)
from fhirconnect.navigation.locator import AnchorLocator, Position, locate_anchor
from fhirconnect.navigation.relationships import (
    DEFAULT_RULES,
    RelationshipCategory,
    RelationshipRule,
)
from fhirconnect.navigation.resolver import Candidate, ReferenceResolver, find_candidates
from fhirconnect.navigation.scanner import Document, WorkspaceScanner

__all__ = [
    "AnchorLocator",
    "Candidate",
    "ClickSite",
    "DEFAULT_RULES",
    "Document",
    "NavigationClassifier",
    "Position",
    "ReferenceResolver",
    "RelationshipCategory",
    "RelationshipRule",
    "WorkspaceScanner",
    "classify_click_site",
    "classify_key_path",
    "find_candidates",
    "locate_anchor",
]
