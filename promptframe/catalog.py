"""
CATALOG: SECTION CONSTANTS FOR GENERATED MEMBERS
================================================

PURPOSE:
--------
Every member in the wire format carries four section constants (E, I, A, Z).
Generated models often omit or garble them, and the synthesizers need a
consistent value to stamp onto every member. Instead of scattering
E=205000, I=0.00011 ... through the code, we keep a small catalog here.

UNITS (same as the wire format):
--------------------------------
- E: Young's modulus (N/mm²), steel = 205000
- I: Moment of inertia (m⁴)
- A: Cross-sectional area (m²)
- Z: Section modulus (m³)

ENGINEERING CONTEXT:
--------------------
- FRAME_SECTION is a medium H-shape used for columns and beams of rigid frames.
- TRUSS_SECTION is a lighter section for pin-jointed truss members.
- DEFAULT_SECTION is the H-300x150x6.5x9 the system prompt tells the
  generation service to assume when the user does not name a section.
"""

from dataclasses import dataclass


STEEL_E = 205000.0  # N/mm²


@dataclass(frozen=True)
class Section:
    """
    Section constants attached to a member.

    Parameters:
    -----------
    name : str
        Human-readable designation
    E : float
        Young's modulus (N/mm²)
    I : float
        Moment of inertia (m⁴)
    A : float
        Cross-sectional area (m²)
    Z : float
        Section modulus (m³)
    """
    name: str
    E: float
    I: float
    A: float
    Z: float

    def as_member_fields(self) -> dict:
        """Return the constants keyed the way the wire format names them."""
        return {'E': self.E, 'I': self.I, 'A': self.A, 'Z': self.Z}


FRAME_SECTION = Section(name="frame-H", E=STEEL_E, I=0.00011, A=0.005245, Z=0.000638)

TRUSS_SECTION = Section(name="truss-member", E=STEEL_E, I=0.00002, A=0.002, Z=0.0002)

DEFAULT_SECTION = Section(name="H-300x150x6.5x9", E=STEEL_E, I=0.0000721, A=0.004678, Z=0.000481)

SECTIONS = {
    'frame': FRAME_SECTION,
    'truss': TRUSS_SECTION,
    'default': DEFAULT_SECTION,
}
