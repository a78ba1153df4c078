"""Provider implementations for the outbound organization API.

Key Components:
    - OrganizationProvider: Abstract contract used by the engine
    - GitHubRestProvider: GitHub REST API implementation over httpx

Example:
    >>> from nodeschoolbot.providers import GitHubRestProvider
    >>> provider = GitHubRestProvider(token="...", organization="nodeschool")
    >>> await provider.create_comment("nodeschool/organizers", 42, "hi")
"""

from nodeschoolbot.providers.base import OrganizationProvider
from nodeschoolbot.providers.github_rest import GitHubRestProvider

__all__ = ["GitHubRestProvider", "OrganizationProvider"]
