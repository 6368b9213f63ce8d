from setuptools import setup

setup(
    name            = "lessanvil",
    version         = "1.0.0",
    description     = "Removes rarely visited chunks from Minecraft Anvil worlds",
    packages        = [ "lessanvil" ],
    python_requires = ">=3.9",
    zip_safe        = True,
    entry_points    = {
        "console_scripts": [
            "lessanvil = lessanvil.cli:main"
        ]
    }
)
