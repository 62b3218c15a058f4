"""
Blood Type Compatibility Helper
Determines which donor blood types can donate to which recipient blood types
"""

BLOOD_TYPES = ['O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+']

# Blood type compatibility matrix (donor -> recipients)
COMPATIBILITY = {
    'O-': ['O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+'],  # Universal donor
    'O+': ['O+', 'A+', 'B+', 'AB+'],
    'A-': ['A-', 'A+', 'AB-', 'AB+'],
    'A+': ['A+', 'AB+'],
    'B-': ['B-', 'B+', 'AB-', 'AB+'],
    'B+': ['B+', 'AB+'],
    'AB-': ['AB-', 'AB+'],
    'AB+': ['AB+'],  # Universal recipient
}

# Recipient -> donors, derived so both directions always agree
RECIPIENT_COMPATIBILITY = {
    recipient: [donor for donor in BLOOD_TYPES if recipient in COMPATIBILITY[donor]]
    for recipient in BLOOD_TYPES
}

# Blood type rarity in India (approximate percentages)
BLOOD_TYPE_RARITY = {
    'O+': {'percentage': 37.12, 'rarity': 'common'},
    'B+': {'percentage': 32.26, 'rarity': 'common'},
    'A+': {'percentage': 22.88, 'rarity': 'common'},
    'AB+': {'percentage': 7.74, 'rarity': 'uncommon'},
    'O-': {'percentage': 2.0, 'rarity': 'rare'},
    'B-': {'percentage': 1.5, 'rarity': 'rare'},
    'A-': {'percentage': 1.0, 'rarity': 'rare'},
    'AB-': {'percentage': 0.5, 'rarity': 'very_rare'},
}

BLOOD_TYPE_INFO = {
    'O-': {'badge': 'Universal Donor', 'description': 'Can donate to all blood types.'},
    'O+': {'badge': 'Most Common', 'description': 'Can donate to all positive types.'},
    'A-': {'badge': 'Rare Type', 'description': 'Can donate to A and AB types.'},
    'A+': {'badge': 'Second Most Common', 'description': 'Can donate to A+ and AB+.'},
    'B-': {'badge': 'Very Rare', 'description': 'Can donate to B and AB types.'},
    'B+': {'badge': 'Less Common', 'description': 'Can donate to B+ and AB+.'},
    'AB-': {'badge': 'Rarest Type', 'description': 'Can donate to AB- and AB+.'},
    'AB+': {'badge': 'Universal Recipient', 'description': 'Can receive from all blood types.'},
}


def normalize_blood_type(blood_type):
    """
    Canonical (upper-case, stripped) form of a blood type string.

    Returns None when the value is not one of the 8 ABO/Rh types.
    """
    if not isinstance(blood_type, str):
        return None
    normalized = blood_type.strip().upper()
    return normalized if normalized in COMPATIBILITY else None


def is_compatible(donor_blood_type, recipient_blood_type):
    """
    Check if donor blood type is compatible with recipient

    Args:
        donor_blood_type: Donor's blood type (e.g., 'O+')
        recipient_blood_type: Recipient's blood type (e.g., 'A+')

    Returns:
        Boolean: True if compatible, False otherwise
    """
    donor = normalize_blood_type(donor_blood_type)
    recipient = normalize_blood_type(recipient_blood_type)
    if donor is None or recipient is None:
        return False

    return recipient in COMPATIBILITY[donor]


def get_compatible_donors(recipient_blood_type):
    """
    Get list of blood types that can donate to recipient

    Args:
        recipient_blood_type: Recipient's blood type

    Returns:
        List of compatible donor blood types (empty for unknown types)
    """
    recipient = normalize_blood_type(recipient_blood_type)
    return list(RECIPIENT_COMPATIBILITY.get(recipient, []))


def get_compatible_recipients(donor_blood_type):
    """
    Get list of blood types that can receive from donor

    Args:
        donor_blood_type: Donor's blood type

    Returns:
        List of compatible recipient blood types (empty for unknown types)
    """
    donor = normalize_blood_type(donor_blood_type)
    return list(COMPATIBILITY.get(donor, []))


def get_all_blood_types():
    return list(BLOOD_TYPES)


def get_blood_type_rarity(blood_type):
    normalized = normalize_blood_type(blood_type)
    return dict(BLOOD_TYPE_RARITY.get(normalized, {'percentage': 0, 'rarity': 'unknown'}))


def get_blood_type_info(blood_type):
    normalized = normalize_blood_type(blood_type)
    info = BLOOD_TYPE_INFO.get(normalized, {'badge': '', 'description': 'Standard blood type.'})
    return {**info, **get_blood_type_rarity(normalized)}


def get_compatibility_score(blood_type):
    """
    Versatility of a blood type: how many types it can donate to / receive from
    """
    donate_to = len(get_compatible_recipients(blood_type))
    receive_from = len(get_compatible_donors(blood_type))
    return {'donate_to': donate_to, 'receive_from': receive_from, 'total': donate_to + receive_from}
