"""htmlpdf - convert a constrained HTML/CSS vocabulary into paginated PDF."""

__version__ = "0.1.0"
