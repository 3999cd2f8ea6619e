# Schemas package
