'''Components parametrizing the resolution methods.

Each component module holds interchangeable functions or objects of one
kind, referable by their names as strings.
'''
