"""
Models module for test scaffolding.

This module contains the data models describing the structure of parsed Java classes.
"""

from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class Parameter:
    """
    A single parameter of a constructor or method.

    Attributes:
        type: The declared type as it appears in the source (e.g. "List<String>")
        name: The parameter name
    """
    type: str
    name: str


@dataclass(frozen=True)
class MethodSignature:
    """
    Signature of a public method.

    Attributes:
        name: The method name
        return_type: The declared return type ("void" for none)
        parameters: Parameters in declaration order
    """
    name: str
    return_type: str
    parameters: Tuple[Parameter, ...] = ()


@dataclass(frozen=True)
class ClassDescriptor:
    """
    Represents one top-level type declaration of a source file.

    Attributes:
        class_name: The class name
        access_modifier: "public ", "protected ", "private " or "" (package-private);
            the trailing space lets it compose directly into a declaration
        class_parameters: The generic parameter clause as source text (e.g. "<T>"), or ""
        constructor_parameters: Parameters of the primary constructor
        public_methods: Public instance methods in declaration order
    """
    class_name: str
    access_modifier: str = ""
    class_parameters: str = ""
    constructor_parameters: Tuple[Parameter, ...] = ()
    public_methods: Tuple[MethodSignature, ...] = ()

    @property
    def is_public(self) -> bool:
        return self.access_modifier.startswith("public")

    def as_public(self) -> "ClassDescriptor":
        """
        Return a copy of this descriptor declared public.

        Returns:
            The descriptor itself if it is already public, otherwise a modified copy
        """
        if self.is_public:
            return self
        return replace(self, access_modifier="public ")
