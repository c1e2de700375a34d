"""Common literal values used across page_composer.

These constants keep endpoint names, resource keys, and drop-target
identifiers centralized so the store client, coordinator, and tests can import
the same values without drifting. Intended for internal use within the
page_composer package.

Examples
--------
>>> from page_composer import _constants
>>> _constants.PAGE_SECTIONS_RESOURCE
'page_sections'
>>> _constants.LOCAL_ORDER_ID_TEMPLATE.format(serial=3)
'placed-3'
"""

DEFAULT_API_BASE = "http://127.0.0.1:3000/api/v1"
DEFAULT_TIMEOUT = 10.0

SECTIONS_RESOURCE = "sections"
PAGES_RESOURCE = "pages"
PAGE_SECTIONS_RESOURCE = "page_sections"

# Body marker the create-link endpoint emits when it fails after committing.
DEFAULT_DEFECT_MARKER = "page_section_url"

PLACEHOLDER_ID = "composition-placeholder"
LOCAL_ORDER_ID_TEMPLATE = "placed-{serial}"
