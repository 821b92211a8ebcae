import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from csvharvest.utils.walker import (
    DiscoveryResult,
    FolderPolicy,
    discover_backup_folders,
    is_excluded_folder,
    is_excluded_name,
    list_directory,
    list_files_with_extension,
    name_contains_marker,
    path_contains_marker,
    walk_directories,
)

from ..test_utils import write_file


POLICY = FolderPolicy('drishti_backup', '_nhp')


class FolderPolicyTest(unittest.TestCase):
    """Test the naming predicates of backup folders."""

    def test_excluded_name(self):
        self.assertEqual('drishti_backup_nhp', POLICY.excluded_name)

    def test_candidate_names(self):
        self.assertTrue(POLICY.is_candidate('drishti_backup'))
        self.assertTrue(POLICY.is_candidate('drishti_backup_nhp'))
        self.assertTrue(POLICY.is_candidate('drishti_backup_old'))
        self.assertTrue(POLICY.is_candidate('Drishti_Backup'))
        self.assertFalse(POLICY.is_candidate('backup'))
        self.assertFalse(POLICY.is_candidate('old_drishti_backup'))

    def test_target_requires_exact_name(self):
        self.assertTrue(POLICY.is_target('drishti_backup'))
        self.assertTrue(POLICY.is_target('DRISHTI_BACKUP'))
        self.assertFalse(POLICY.is_target('drishti_backup2'))
        self.assertFalse(POLICY.is_target('drishti_backup_old'))


class ExclusionPredicateTest(unittest.TestCase):
    """Each exclusion condition is checked on its own, then combined."""

    def test_is_excluded_name(self):
        self.assertTrue(is_excluded_name('drishti_backup_nhp', POLICY))
        self.assertTrue(is_excluded_name('Drishti_Backup_NHP', POLICY))
        self.assertFalse(is_excluded_name('drishti_backup_nhp2', POLICY))
        self.assertFalse(is_excluded_name('drishti_backup', POLICY))

    def test_name_contains_marker(self):
        self.assertTrue(name_contains_marker('drishti_backup_nhp2', POLICY))
        self.assertTrue(name_contains_marker('drishti_backup_old_nhp', POLICY))
        self.assertFalse(name_contains_marker('drishti_backup', POLICY))
        self.assertFalse(name_contains_marker('drishti_backupnhp', POLICY))

    def test_path_contains_marker(self):
        self.assertTrue(path_contains_marker(Path('/data/site_nhp/drishti_backup'), POLICY))
        self.assertTrue(path_contains_marker(Path('/data/drishti_backup_nhp/x/drishti_backup'), POLICY))
        self.assertFalse(path_contains_marker(Path('/data/site/drishti_backup'), POLICY))

    def test_path_contains_marker_below_root(self):
        root = Path('/data/site_nhp_mirror')
        self.assertFalse(path_contains_marker(root / 'drishti_backup', POLICY, root))
        self.assertTrue(path_contains_marker(root / 'a_nhp' / 'drishti_backup', POLICY, root))
        self.assertTrue(is_excluded_folder(root / 'drishti_backup_nhp', POLICY, root))
        self.assertFalse(is_excluded_folder(root / 'x' / 'drishti_backup', POLICY, root))

    def test_is_excluded_folder(self):
        self.assertTrue(is_excluded_folder(Path('/data/drishti_backup_nhp'), POLICY))
        self.assertTrue(is_excluded_folder(Path('/data/drishti_backup_x_nhp_y'), POLICY))
        self.assertTrue(is_excluded_folder(Path('/data/a_nhp/drishti_backup'), POLICY))
        self.assertFalse(is_excluded_folder(Path('/data/site1/drishti_backup'), POLICY))
        self.assertFalse(is_excluded_folder(Path('/data/site1/drishti_backup_old'), POLICY))


class WalkDirectoriesTest(unittest.TestCase):
    """Test walk_directories and list_directory."""

    def test_walks_nested_directories(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / 'a' / 'b' / 'c').mkdir(parents=True)
            (base / 'd').mkdir()
            write_file(base / 'a' / 'file.csv')

            found = {p.relative_to(base) for p in walk_directories(base)}

            self.assertEqual({Path('a'), Path('a/b'), Path('a/b/c'), Path('d')}, found)

    def test_does_not_follow_symlinks(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / 'real' / 'inner').mkdir(parents=True)
            os.symlink(base / 'real', base / 'link')

            found = {p.relative_to(base) for p in walk_directories(base)}

            self.assertEqual({Path('real'), Path('real/inner')}, found)

    def test_missing_directory_lists_empty(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertEqual([], list_directory(Path(tmpdir) / 'missing'))
            self.assertEqual([], list(walk_directories(Path(tmpdir) / 'missing')))

    def test_listing_failure_lists_empty(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / 'a').mkdir()

            with mock.patch.object(Path, 'iterdir', side_effect=PermissionError("denied")):
                self.assertEqual([], list_directory(base))


class DiscoverBackupFoldersTest(unittest.TestCase):
    """Test discover_backup_folders."""

    def test_missing_root(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            result = discover_backup_folders(Path(tmpdir) / 'missing', POLICY)

            self.assertEqual(DiscoveryResult(False, [], [], []), result)

    def test_plain_and_marked_folders(self):
        """A plain backup folder is a target; its marked sibling is excluded."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / 'A'
            (root / 'site1' / 'drishti_backup').mkdir(parents=True)
            (root / 'site1' / 'drishti_backup_nhp').mkdir(parents=True)

            result = discover_backup_folders(root, POLICY)

            self.assertTrue(result.root_exists)
            self.assertEqual([root / 'site1' / 'drishti_backup'], result.targets)
            self.assertEqual([root / 'site1' / 'drishti_backup_nhp'], result.excluded)
            self.assertEqual([], result.ignored)

    def test_other_suffix_is_ignored_not_excluded(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / 'drishti_backup_old').mkdir()
            (root / 'drishti_backup2').mkdir()

            result = discover_backup_folders(root, POLICY)

            self.assertEqual([], result.targets)
            self.assertEqual([], result.excluded)
            self.assertEqual({root / 'drishti_backup_old', root / 'drishti_backup2'}, set(result.ignored))

    def test_backup_folder_under_marked_parent_is_excluded(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            nested = root / 'drishti_backup_nhp' / 'copy' / 'drishti_backup'
            nested.mkdir(parents=True)
            (root / 'site_nhp' / 'drishti_backup').mkdir(parents=True)

            result = discover_backup_folders(root, POLICY)

            self.assertEqual([], result.targets)
            self.assertEqual(
                {root / 'drishti_backup_nhp', nested, root / 'site_nhp' / 'drishti_backup'},
                set(result.excluded))

    def test_marker_in_root_path_does_not_exclude(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / 'site_nhp_mirror'
            target = root / 'drishti_backup'
            target.mkdir(parents=True)
            (root / 'drishti_backup_nhp').mkdir()

            result = discover_backup_folders(root, POLICY)

            self.assertEqual([target], result.targets)
            self.assertEqual([root / 'drishti_backup_nhp'], result.excluded)

    def test_nested_target_folders(self):
        """Backup folders are found at any depth, including inside other backup folders."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            outer = root / 'x' / 'drishti_backup'
            inner = outer / 'archive' / 'drishti_backup'
            inner.mkdir(parents=True)

            result = discover_backup_folders(root, POLICY)

            self.assertEqual([outer, inner], result.targets)


class ListFilesWithExtensionTest(unittest.TestCase):
    """Test list_files_with_extension."""

    def test_matches_extension_case_insensitively(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            write_file(base / 'a.csv')
            write_file(base / 'B.CSV')
            write_file(base / 'c.txt')
            write_file(base / 'sub' / 'd.csv')
            (base / 'folder.csv').mkdir()

            names = [path.name for path, st in list_files_with_extension(base, '.csv')]

            self.assertEqual(['B.CSV', 'a.csv'], names)

    def test_yields_stat(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_file(Path(tmpdir) / 'a.csv', 'x,y\n')

            [(found, st)] = list(list_files_with_extension(Path(tmpdir), '.csv'))

            self.assertEqual(path, found)
            self.assertEqual(4, st.st_size)


if __name__ == '__main__':
    unittest.main()
