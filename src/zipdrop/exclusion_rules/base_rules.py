from abc import ABC, abstractmethod
from typing import Sequence, Union

from zipdrop.types import PathType


class BaseExclusionRules(ABC):
    """
    Abstract base class defining the interface for file/directory exclusion rules.

    Concrete rule types decide whether a path relative to the picked root folder
    should be left out of the tree preview and of the archive. Glob patterns and
    manually deselected paths are both expressed through this interface, which lets
    the tree builder and the archive assembler apply a single combined predicate.
    File loading and individual rule addition are optional capabilities that depend
    on the rule type.

    Example:
        >>> from zipdrop.exclusion_rules.pattern_rules import PatternExclusionRules
        >>> rules = PatternExclusionRules()
        >>> rules.add_rule('*.pyc')
        >>> rules.exclude('pkg/test.pyc')
        True
        >>> rules.exclude('pkg/test.py')
        False
        >>>
        >>> from zipdrop.exclusion_rules.manual_rules import ManualExclusionRules
        >>> manual = ManualExclusionRules({'notes.txt'})
        >>> manual.exclude('notes.txt')
        True
        >>> # manual.add_rule('x')  # Would raise NotImplementedError
    """

    @abstractmethod
    def exclude(self, path: str, is_dir: bool = False) -> bool:
        """
        Determine if a given path should be excluded.

        Args:
            path (str): Slash-separated path relative to the picked root folder.
            is_dir (bool): Whether the path names a directory. Rule types that treat
                directories specially (e.g. patterns ending in "/") use this flag.

        Returns:
            bool: True if the path should be excluded, False if it should be included.
        """
        pass

    def has_rules(self) -> bool:
        """
        Report whether this rule object can exclude anything at all.

        Returns:
            bool: True unless the subclass knows it is empty.
        """
        return True

    def load_rules(self, rules_files: Union[PathType, Sequence[PathType]]) -> None:
        """
        Load exclusion rules from one or more files.

        Rule types that don't support file operations use this default
        implementation, which raises NotImplementedError.

        Args:
            rules_files: Path to a file or sequence of paths containing exclusion rules.

        Raises:
            NotImplementedError: If this rule type doesn't support loading from files.
        """
        raise NotImplementedError(f"{self.__class__.__name__} doesn't support loading rules from files.")

    def add_rule(self, rule: str) -> None:
        """
        Add a single exclusion rule directly.

        Args:
            rule (str): The exclusion rule to add.

        Raises:
            NotImplementedError: If this rule type doesn't support adding individual rules.
        """
        raise NotImplementedError(f"{self.__class__.__name__} doesn't support adding individual rules.")
