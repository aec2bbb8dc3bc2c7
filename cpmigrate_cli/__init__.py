"""
cpmigrate CLI - checkpoint topic migration

Commands:
- cpmigrate extract - Checkpoint topic -> file
- cpmigrate replace - File -> checkpoint topic
- cpmigrate patch - Merge file into checkpoint topic
- cpmigrate inspect - Show a checkpoints file
"""

__version__ = "0.1.0"
