"""Pure domain layer: value objects, validators and ports. No I/O."""
