from gomoto.errors import ValidationError


def clean_text(value, label):
    """Strip a free-text field, or return None when it is empty or absent."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be text.")
    return value.strip() or None


def check_places(value, label, places):
    """Reject a Decimal carrying more fractional digits than its column keeps."""
    exponent = value.as_tuple().exponent
    if isinstance(exponent, int) and -exponent > places:
        raise ValidationError(f"{label} may have at most {places} decimal places.")
    return value
