"""Find unused dependencies declared in Cargo.toml files of a Rust workspace."""

__version__ = "0.1.56"

__all__ = ["__version__"]