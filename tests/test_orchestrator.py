import threading
import unittest

from fakes import FakePlatform, no_sleep

from caprover_oneclick.errors import (
    BuildFailedError,
    CyclicDependencyError,
    DeploymentCancelled,
    InvalidValueError,
    TemplateNotFoundError,
)
from caprover_oneclick.executor import DeploymentExecutor
from caprover_oneclick.orchestrator import deploy_one_click_app, render_one_click_app
from caprover_oneclick.poller import ReadinessPoller

CYCLIC_TEMPLATE = """\
captainVersion: 4
services:
    $$cap_appname-a:
        image: busybox
        depends_on:
            - $$cap_appname-b
    $$cap_appname-b:
        image: busybox
        depends_on:
            - $$cap_appname-a
caproverOneClickApp:
    variables: []
"""


class RenderTests(unittest.TestCase):
    def setUp(self):
        self.platform = FakePlatform()

    def test_render_resolves_and_substitutes(self):
        rendered = render_one_click_app(
            self.platform,
            "wordpress",
            "blog",
            {"$$cap_wp_version": "6.5"},
            random_hex=lambda n: "f" * (2 * n),
        )
        self.assertEqual(rendered.app_name, "blog-wordpress")
        self.assertEqual(
            rendered.template.service_names(),
            ["blog-wordpress-db", "blog-wordpress-wordpress"],
        )
        wordpress = rendered.template.services["blog-wordpress-wordpress"]
        self.assertEqual(wordpress.image, "wordpress:6.5")
        self.assertEqual(wordpress.environment["WORDPRESS_DB_PASSWORD"], "f" * 32)
        self.assertEqual(wordpress.environment["WORDPRESS_DB_HOST"], "srv-captain--blog-wordpress-db:3306")
        self.assertEqual(
            rendered.template.info.end_instructions,
            "WordPress is available at http://blog-wordpress-wordpress.apps.example.com",
        )
        self.assertNotIn("$$cap", rendered.text.split("caproverOneClickApp")[0])

    def test_render_makes_no_mutating_calls(self):
        render_one_click_app(self.platform, "wordpress", "blog", {})
        self.assertEqual(
            set(self.platform.call_names()),
            {"list_one_click_templates", "fetch_template_source", "get_root_domain"},
        )

    def test_unknown_app_is_rejected(self):
        with self.assertRaises(TemplateNotFoundError):
            render_one_click_app(self.platform, "ghost", "blog", {})

    def test_invalid_variable_aborts_before_remote_changes(self):
        with self.assertRaises(InvalidValueError):
            deploy_one_click_app(self.platform, "wordpress", "blog", {"$$cap_db_pass": "short"})
        self.assertNotIn("create_application", self.platform.call_names())


class DeployTests(unittest.TestCase):
    def setUp(self):
        self.platform = FakePlatform()
        self.executor = DeploymentExecutor(
            self.platform,
            poller=ReadinessPoller(interval=1, timeout=5, sleep=no_sleep),
            settle_delay=0,
        )

    def test_deploys_services_in_dependency_order(self):
        self.platform.building_ticks["blog-wordpress-db"] = 2
        result = deploy_one_click_app(
            self.platform, "wordpress", "blog", {}, executor=self.executor
        )
        self.assertEqual(result.app_name, "blog-wordpress")
        self.assertEqual(result.deployed, ["blog-wordpress-db", "blog-wordpress-wordpress"])
        self.assertEqual(result.display_name, "WordPress")
        created = [call[1] for call in self.platform.calls if call[0] == "create_application"]
        self.assertEqual(created, result.deployed)

    def test_local_template_skips_catalog(self):
        template = self.platform.templates["wordpress"]
        result = deploy_one_click_app(
            self.platform, "custom", "blog", {}, template_source=template, executor=self.executor
        )
        self.assertEqual(result.deployed, ["blog-custom-db", "blog-custom-wordpress"])
        self.assertNotIn("fetch_template_source", self.platform.call_names())

    def test_cycle_deploys_nothing(self):
        self.platform.templates["loop"] = CYCLIC_TEMPLATE
        with self.assertRaises(CyclicDependencyError):
            deploy_one_click_app(self.platform, "loop", "x", {}, executor=self.executor)
        self.assertNotIn("create_application", self.platform.call_names())

    def test_build_failure_stops_rollout(self):
        self.platform.failed_builds.add("blog-wordpress-db")
        with self.assertRaises(BuildFailedError):
            deploy_one_click_app(self.platform, "wordpress", "blog", {}, executor=self.executor)
        self.assertNotIn("blog-wordpress-wordpress", self.platform.apps)

    def test_cancelled_run_raises(self):
        cancel = threading.Event()
        cancel.set()
        with self.assertRaises(DeploymentCancelled):
            deploy_one_click_app(
                self.platform, "wordpress", "blog", {}, executor=self.executor, cancel_event=cancel
            )
        self.assertEqual(self.platform.apps, {})

    def test_default_executor_uses_config_timing(self):
        self.platform.config = self.platform.config.model_copy(
            update={"poll_interval": 0.001, "poll_timeout": 1.0}
        )
        result = deploy_one_click_app(self.platform, "wordpress", "blog", {})
        self.assertEqual(len(result.deployed), 2)


if __name__ == "__main__":
    unittest.main()
