"""
Fixed vocabularies for sites, departments and asset categories.

Values are stored in one canonical spelling. Lookups are case-insensitive
so that "Laptop", "LAPTOP" and "laptop" all resolve to the same member.
"""

from typing import Dict, Iterable, Optional

BUILDINGS = [
    'Central Warehouse',
    'Main Building',
    'K Building',
    'N Building',
    'S Building',
    'R Building',
    'Pharmacy Building',
]

DEPARTMENTS = [
    'Computer Science',
    'Engineering',
    'Architecture',
    'Business',
    'Mass Comm',
    'Alsun',
    'Pharmacy',
    'Dentistry',
    'Unassigned',
]

DEFAULT_LOCATION = 'Central Warehouse'
DEFAULT_DEPARTMENT = 'Unassigned'

ASSET_TYPES = [
    # IT & Computing
    {'value': 'laptop', 'label': 'Laptop', 'category': 'IT & Computing'},
    {'value': 'desktop', 'label': 'Desktop PC', 'category': 'IT & Computing'},
    {'value': 'monitor', 'label': 'Monitor', 'category': 'IT & Computing'},
    {'value': 'server', 'label': 'Server', 'category': 'IT & Computing'},
    {'value': 'tablet', 'label': 'Tablet / iPad', 'category': 'IT & Computing'},
    {'value': 'peripheral', 'label': 'Peripheral (Keyboard/Mouse)', 'category': 'IT & Computing'},
    {'value': 'keyboard', 'label': 'Keyboard', 'category': 'IT & Computing'},
    {'value': 'electronics', 'label': 'Electronics', 'category': 'IT & Computing'},
    # AV & Classroom
    {'value': 'projector', 'label': 'Projector', 'category': 'AV & Classroom'},
    {'value': 'smartboard', 'label': 'Smartboard', 'category': 'AV & Classroom'},
    {'value': 'camera', 'label': 'Camera', 'category': 'AV & Classroom'},
    {'value': 'microphone', 'label': 'Microphone', 'category': 'AV & Classroom'},
    {'value': 'speaker', 'label': 'Speaker System', 'category': 'AV & Classroom'},
    # Networking
    {'value': 'router', 'label': 'Router', 'category': 'Networking'},
    {'value': 'switch', 'label': 'Network Switch', 'category': 'Networking'},
    {'value': 'access_point', 'label': 'Access Point (WiFi)', 'category': 'Networking'},
    {'value': 'firewall', 'label': 'Firewall Appliance', 'category': 'Networking'},
    # Office & Furniture
    {'value': 'printer', 'label': 'Printer', 'category': 'Office & Furniture'},
    {'value': 'scanner', 'label': 'Scanner', 'category': 'Office & Furniture'},
    {'value': 'desk', 'label': 'Desk', 'category': 'Office & Furniture'},
    {'value': 'chair', 'label': 'Chair', 'category': 'Office & Furniture'},
    {'value': 'filing_cabinet', 'label': 'Filing Cabinet', 'category': 'Office & Furniture'},
    {'value': 'whiteboard', 'label': 'Whiteboard', 'category': 'Office & Furniture'},
    {'value': 'furniture', 'label': 'Furniture', 'category': 'Office & Furniture'},
    # Lab & Research
    {'value': 'microscope', 'label': 'Microscope', 'category': 'Lab & Research'},
    {'value': 'centrifuge', 'label': 'Centrifuge', 'category': 'Lab & Research'},
    {'value': 'oscilloscope', 'label': 'Oscilloscope', 'category': 'Lab & Research'},
    {'value': '3d_printer', 'label': '3D Printer', 'category': 'Lab & Research'},
    {'value': 'lab_bench', 'label': 'Lab Bench', 'category': 'Lab & Research'},
    # Facilities
    {'value': 'vehicle', 'label': 'University Vehicle', 'category': 'Facilities'},
    {'value': 'generator', 'label': 'Generator', 'category': 'Facilities'},
    {'value': 'hvac', 'label': 'HVAC Unit', 'category': 'Facilities'},
    {'value': 'maintenance_tool', 'label': 'Power Tool', 'category': 'Facilities'},
]


def _index(values: Iterable[str]) -> Dict[str, str]:
    return {value.strip().lower(): value for value in values}


_BUILDING_INDEX = _index(BUILDINGS)
_DEPARTMENT_INDEX = _index(DEPARTMENTS)
_TYPE_INDEX = _index(t['value'] for t in ASSET_TYPES)


def _lookup(index: Dict[str, str], value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return index.get(value.strip().lower())


def canonical_building(value: Optional[str]) -> Optional[str]:
    return _lookup(_BUILDING_INDEX, value)


def canonical_department(value: Optional[str]) -> Optional[str]:
    return _lookup(_DEPARTMENT_INDEX, value)


def canonical_asset_type(value: Optional[str]) -> Optional[str]:
    return _lookup(_TYPE_INDEX, value)
