"""pkgsync — converge pkgng packages on FreeBSD / DragonFly hosts."""

__version__ = "0.1.0"
