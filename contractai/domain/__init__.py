"""Domain packages (schemas, repository, service, router per area)"""
