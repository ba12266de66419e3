"""
Ghost - team-based casting on Farcaster.

Teams pool casting rights so any ghostwriter on a team can publish
casts on behalf of teammates who connected a signer.
"""

__version__ = "0.1.0"
