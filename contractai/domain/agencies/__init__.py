"""Agency domain - agency profile and branding"""
