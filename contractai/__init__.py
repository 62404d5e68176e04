"""ContractAI backend"""
