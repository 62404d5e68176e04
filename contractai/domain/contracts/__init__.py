"""Contract domain - contract authoring, signing, sharing and PDF export"""
