"""
Version 1 of the PlenPilot API.
"""
