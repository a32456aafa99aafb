"""Human-readable zoom and scale strings for the status line."""

_SUPERSCRIPT = str.maketrans('0123456789-', '⁰¹²³⁴⁵⁶⁷⁸⁹⁻')


def _power_of_ten(value):
    mantissa, exponent = f"{value:.1e}".split('e')
    return f"{mantissa}×10{str(int(exponent)).translate(_SUPERSCRIPT)}"


def format_magnification(magnification):
    """
    Format a zoom factor: 123.4, 12.3K, 4.5M, 6.7G, then 8.9×10¹⁵.
    """
    if magnification < 1e3:
        return f"{magnification:.1f}"
    if magnification < 1e6:
        return f"{magnification / 1e3:.1f}K"
    if magnification < 1e9:
        return f"{magnification / 1e6:.1f}M"
    if magnification < 1e12:
        return f"{magnification / 1e9:.1f}G"
    return _power_of_ten(magnification)


def format_scale(scale):
    """Format plane units per pixel, e.g. 1.3×10⁻⁴."""
    return _power_of_ten(scale)
