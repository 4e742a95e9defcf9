"""
The MODEL layer contains pure data structures and drafting algorithms.
It has NO knowledge of how the sketch is rendered.
It deals with Geometry, the inspection Grid, Contours and Dimensions.
"""
