"""
Named locations worth visiting.

Each preset is a View (centre + scale in plane units per device pixel).
The scale assumes a canvas of roughly desktop size; it is clamped to the
live viewport limits when used.

To add a new preset, add it to the PRESETS dictionary below.
"""

from .viewport import View


# Registry of all available presets.
# Keys are display names, values are the target views.
PRESETS = {
    'Seahorse Valley': View(-0.7435669, 0.1314023, 0.00005),
    'Elephant Valley': View(0.28692999, 0.0148590, 0.00004),
    'Triple Spiral Valley': View(-0.7710, 0.1060, 0.00008),
    'Dendrite': View(-0.1592, 1.0317, 0.0015),
    'Mini Mandelbrot': View(-0.7453, 0.1127, 0.000008),
    'Misiurewicz Point': View(-0.1011, 0.9563, 0.0003),
    'Scepter Valley': View(-1.2569, 0.3803, 0.0003),
    'Satellite': View(-0.1565, 1.0325, 0.0001),
}


def get_preset(name):
    """
    Get a preset view by name.

    Raises:
        KeyError if name not found
    """
    return PRESETS[name]


def list_preset_names():
    """Get list of available preset names."""
    return list(PRESETS.keys())
