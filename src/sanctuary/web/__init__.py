"""Sanctuary Web Interface"""
