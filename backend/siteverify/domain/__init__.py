"""Domain layer: pure workflow rules and collaborator ports"""
