"""
Models: the parameter arena, the layers and the recurrent network
container that drives them through time.
"""
