"""
Generators — produce configuration file content from site settings.

Every generator is a pure function of its inputs: the same site and
repository always yield byte-identical content, which is what lets the
reconciler treat "file exists" as "file is current".
"""
