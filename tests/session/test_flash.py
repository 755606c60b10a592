# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for two-generation flash data aging."""

from flysession.session.flash import FlashBag


def _bag(attributes=None):
    attributes = {} if attributes is None else attributes
    return FlashBag(attributes), attributes


class TestFlash:
    def test_flash_tags_key_as_new(self):
        bag, attributes = _bag()
        bag.flash("status", "saved")
        assert attributes["_flash"] == {"status": "saved"}
        assert attributes["_flash_new"] == ["status"]
        assert attributes["_flash_old"] == []

    def test_flash_is_idempotent(self):
        bag, attributes = _bag()
        bag.flash("status", "one")
        bag.flash("status", "two")
        assert attributes["_flash_new"] == ["status"]
        assert bag.get("status") == "two"

    def test_reflash_of_old_key_moves_it_to_new(self):
        bag, attributes = _bag({"_flash": {"k": 1}, "_flash_new": [], "_flash_old": ["k"]})
        bag.flash("k", 2)
        assert attributes["_flash_new"] == ["k"]
        assert attributes["_flash_old"] == []

    def test_now_is_only_visible_for_current_request(self):
        bag, attributes = _bag()
        bag.now("notice", "hi")
        assert bag.get("notice") == "hi"
        bag.clean()
        assert bag.has("notice") is False


class TestAging:
    def test_age_demotes_new_and_drops_old(self):
        bag, attributes = _bag({"_flash": {"a": 1, "b": 2}, "_flash_new": ["b"], "_flash_old": ["a"]})
        bag.age()
        assert attributes["_flash"] == {"b": 2}
        assert attributes["_flash_new"] == []
        assert attributes["_flash_old"] == ["b"]

    def test_key_is_removed_from_bucket_after_two_agings(self):
        bag, attributes = _bag()
        bag.flash("msg", "hi")
        bag.age()
        assert bag.get("msg") == "hi"
        bag.age()
        assert "msg" not in attributes["_flash"]
        assert attributes["_flash_new"] == []
        assert attributes["_flash_old"] == []

    def test_clean_removes_values_still_tagged_old(self):
        bag, attributes = _bag({"_flash": {"a": 1, "b": 2}, "_flash_new": ["b"], "_flash_old": ["a"]})
        bag.clean()
        assert attributes["_flash"] == {"b": 2}
        assert attributes["_flash_new"] == ["b"]
        assert attributes["_flash_old"] == []

    def test_age_on_empty_attributes(self):
        bag, attributes = _bag()
        bag.age()
        assert attributes == {"_flash": {}, "_flash_new": [], "_flash_old": []}


class TestKeepAndReflash:
    def test_reflash_merges_old_into_new_without_duplicates(self):
        bag, attributes = _bag({"_flash": {"a": 1, "b": 2}, "_flash_new": ["b"], "_flash_old": ["a", "b"]})
        bag.reflash()
        assert attributes["_flash_new"] == ["b", "a"]
        assert attributes["_flash_old"] == []

    def test_keep_single_key(self):
        bag, attributes = _bag({"_flash": {"a": 1, "b": 2}, "_flash_new": [], "_flash_old": ["a", "b"]})
        bag.keep("a")
        assert attributes["_flash_new"] == ["a"]
        assert attributes["_flash_old"] == ["b"]
        bag.clean()
        assert attributes["_flash"] == {"a": 1}

    def test_keep_many_keys(self):
        bag, attributes = _bag({"_flash": {"a": 1, "b": 2}, "_flash_new": [], "_flash_old": ["a", "b"]})
        bag.keep(["a", "b"])
        assert attributes["_flash_new"] == ["a", "b"]
        assert attributes["_flash_old"] == []


class TestAccess:
    def test_has_treats_none_as_absent(self):
        bag, _ = _bag()
        bag.flash("empty", None)
        assert bag.has("empty") is False
        assert bag.get("empty", "default") is None

    def test_all_returns_copy(self):
        bag, attributes = _bag()
        bag.flash("a", 1)
        snapshot = bag.all()
        snapshot["b"] = 2
        assert attributes["_flash"] == {"a": 1}

    def test_get_without_bucket(self):
        bag, _ = _bag()
        assert bag.get("missing", "x") == "x"
        assert bag.all() == {}
