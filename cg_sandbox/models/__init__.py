"""Value types shared by the sandbox layers."""
