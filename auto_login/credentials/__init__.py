# Credentials Package
