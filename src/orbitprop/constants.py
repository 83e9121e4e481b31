"""
The `constants` module defines physical constants used to set up two-body propagations.

Unlike SI-based astrodynamics libraries, values here are expressed in the
kilometre/second unit pair commonly used for interplanetary work. orbitprop
never converts units internally, so any consistent pair works as long as the
state and `mu` agree.
"""

# Time Constants

"""
Number of seconds in one day. Units: *s*
"""
SECONDS_PER_DAY = 86400.0

# Physical Constants

"""
Astronomical Unit. Equal to the mean distance of the Earth from the sun.
TDB-compatible value. Units: *km*

References:

1. P. Gérard and B. Luzum, *IERS Technical Note 36*, 2010
"""
AU = 1.49597870700e8  # [km] Astronomical Unit IAU 2010

# Earth Constants
"""
Earth's equatorial radius. Units: *km*

References:

1. NIMA Technical Report TR8350.2
"""
R_EARTH = 6378.1363  # [km] GGM05s Value

"""
Earth's Gravitational constant [km^3/s^2]

References:

1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and
Applications*, 2012.
"""
GM_EARTH = 3.986004415e5  # [km^3/s^2] GGM05s Value

# Sun Constants
"""
Gravitational constant of the Sun. [km^3/s^2]

References:

1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and
Applications*, 2012.
"""
GM_SUN = 132712440041.939400  # [km^3/s^2]

"""
Rounded solar gravitational parameter used by the reference heliocentric
propagation cases. [km^3/s^2]
"""
GM_SUN_ROUNDED = 1.327e11

"""
Gravitational constant of the Moon. [km^3/s^2]

References:

1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and
Applications*, 2012.
"""
GM_MOON = 4902.800066  # [km^3/s^2]
