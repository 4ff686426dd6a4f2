"""
The curated catalog of installable tools.

Tools are installed in the order they appear in CATALOG. Each pattern is a
case-insensitive regular expression matched against asset download URLs;
the `{arch}` placeholder is replaced with the host architecture token.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from localbin.constants import ALL_TOOLS_KEYWORD, LATEST_RELEASE_ALIAS

ARCH_PLACEHOLDER = "{arch}"


@dataclass(frozen=True)
class ToolSpec:
    """Static description of one installable tool."""

    owner: str
    """GitHub repository owner"""

    repo: str
    """GitHub repository name"""

    name: str
    """Executable (command) name installed into the bin directory"""

    pattern: str
    """Asset URL regex; `{arch}` expands to the architecture token"""

    description: str = ""
    """One-line summary shown in the usage catalog"""

    tag: str = LATEST_RELEASE_ALIAS
    """Release tag to install, or "latest" for the newest release"""

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    def asset_pattern(self, arch_pattern: str) -> str:
        return self.pattern.replace(ARCH_PLACEHOLDER, arch_pattern)

    def encodes_extension(self) -> bool:
        """
        Whether the pattern pins a file extension itself.

        Such patterns bypass the tar tier of asset selection (and, except for
        ".zip", the zip tier too) because those tiers add their own suffix.
        """
        tail = self.pattern.rstrip("$").lower()
        return tail.endswith((".deb", ".rpm", ".zip"))


# fmt: off
CATALOG: List[ToolSpec] = [
    ToolSpec("jqlang", "jq", "jq", "jq[-_](linux[-_])?{arch}",
             "Command-line JSON processor"),
    ToolSpec("junegunn", "fzf", "fzf", "fzf.*linux_{arch}",
             "Command-line fuzzy finder"),
    ToolSpec("atuinsh", "atuin", "atuin", "atuin-{arch}-unknown-linux-musl",
             "Magical shell history"),
    ToolSpec("tealdeer-rs", "tealdeer", "tldr", "tealdeer.*{arch}.*musl",
             "A fast tldr client"),
    ToolSpec("denisidoro", "navi", "navi", "navi.*{arch}.*musl",
             "An interactive cheatsheet for commands"),
    ToolSpec("zellij-org", "zellij", "zellij", "zellij.*{arch}.*linux-musl",
             "A terminal workspace"),
    ToolSpec("sharkdp", "bat", "bat", "bat.*(musl|gnu|unknown-linux).*{arch}",
             "A cat clone with wings"),
    ToolSpec("lsd-rs", "lsd", "lsd", "lsd.*(musl|gnu|unknown-linux).*{arch}",
             "The next gen ls command"),
    ToolSpec("bootandy", "dust", "dust", "du-dust.*{arch}",
             "A more intuitive version of du"),
    ToolSpec("sharkdp", "hyperfine", "hyperfine", "hyperfine-musl.*{arch}",
             "A command-line benchmarking tool"),
    ToolSpec("muesli", "duf", "duf", "duf.*linux.*{arch}",
             "Disk Usage/Free Utility"),
    ToolSpec("ajeetdsouza", "zoxide", "zoxide", "zoxide.*{arch}.*musl",
             "A smarter cd command"),
    ToolSpec("sharkdp", "fd", "fd", "fd.*(musl|gnu|unknown-linux).*{arch}",
             "A simple, fast and user-friendly alternative to find"),
    ToolSpec("dandavison", "delta", "delta", "delta.*{arch}.*musl",
             "A syntax-highlighting pager for git and diff output"),
    ToolSpec("theryangeary", "choose", "choose", "choose.*{arch}.*linux-musl",
             "A human-friendly alternative to cut and awk"),
    ToolSpec("ms-jpq", "sad", "sad", "{arch}-unknown-linux-musl.deb",
             "Space Age seD, batch find and replace"),
    ToolSpec("chmln", "sd", "sd", "sd.*{arch}.*unknown-linux-musl",
             "Intuitive find & replace CLI"),
    ToolSpec("BurntSushi", "ripgrep", "rg", "ripgrep.*{arch}.*musl",
             "ripgrep, a line-oriented search tool"),
    ToolSpec("domcyrus", "rustnet", "rustnet",
             "rustnet.*{arch}.*(musl|gnu|unknown-linux)",
             "A small networking toolkit in Rust"),
    ToolSpec("ClementTsang", "bottom", "btm",
             "bottom.*(musl|gnu|unknown-linux).*{arch}.deb",
             "A cross-platform graphical process/system monitor"),
    ToolSpec("jesseduffield", "lazydocker", "lazydocker",
             "lazydocker.*Linux.*{arch}",
             "A simple terminal UI for docker"),
    ToolSpec("rs", "curlie", "curlie", "curlie.*freebsd.*{arch}",
             "The power of curl, the ease of use of httpie"),
    ToolSpec("ducaale", "xh", "xh", "xh.*{arch}.*musl",
             "A friendly and fast tool for making HTTP requests"),
    ToolSpec("veeso", "termscp", "termscp",
             "termscp.*{arch}.*(musl|gnu|unknown-linux)",
             "A terminal SCP client with UI"),
    ToolSpec("zyedidia", "micro", "micro", "micro.*",
             "A modern and intuitive terminal-based text editor"),
    ToolSpec("gitui-org", "gitui", "gitui", "gitui.*{arch}",
             "A fast terminal UI for git"),
    ToolSpec("jarun", "nnn", "nnn", "nnn.*musl.*{arch}",
             "The unorthodox terminal file manager"),
    ToolSpec("helix-editor", "helix", "hx", "helix.*{arch}",
             "A post-modern modal text editor"),
    ToolSpec("eza-community", "eza", "eza", "eza.*{arch}.*musl",
             "A modern ls replacement"),
]
# fmt: on


def catalog_names(catalog: Optional[Iterable[ToolSpec]] = None) -> List[str]:
    return [tool.name for tool in (CATALOG if catalog is None else catalog)]


def find_tool(name: str, catalog: Optional[Iterable[ToolSpec]] = None) -> Optional[ToolSpec]:
    for tool in CATALOG if catalog is None else catalog:
        if tool.name == name:
            return tool
    return None


def select_tools(
    requested: Iterable[str],
    all_tools: bool = False,
    catalog: Optional[Iterable[ToolSpec]] = None,
) -> List[ToolSpec]:
    """
    Pick the catalog entries to process, preserving catalog order.

    Parameters:
        requested (Iterable[str]): Tool names from the command line; "all" selects every tool.
        all_tools (bool): Select every tool regardless of `requested` (dry-run preview).
        catalog (Optional[Iterable[ToolSpec]]): Catalog to select from; defaults to CATALOG.

    Returns:
        List[ToolSpec]: Selected tools in catalog order. Unknown names select nothing.
    """
    tools = list(CATALOG if catalog is None else catalog)
    wanted = set(requested)
    if all_tools or ALL_TOOLS_KEYWORD in wanted:
        return tools
    return [tool for tool in tools if tool.name in wanted]
