"""
Applications Package für den Career Crawler

Enthält die Kommandozeile (click).
"""
