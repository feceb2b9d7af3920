"""
Sanctuary - Live Presentation Control

Control pages push the current Bible verse, song lyrics slide, program item
and display settings to every connected display screen in real time.
"""

__version__ = "1.0.0"
__author__ = "Sanctuary Contributors"
