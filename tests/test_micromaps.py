"""End-to-end build, reconfiguration, inspector parsing and session handling."""

import unittest

import pandas as pd

from micromap_package.color_assigner import BACKGROUND_COLOR
from micromap_package.config import MicromapConfig
from micromap_package.errors import (EmptyDatasetError, InvalidAttributeLengthError,
                                     InvalidConfigurationError,
                                     InvalidGroupingError, NonUniqueIdError,
                                     RebuildInProgressError, ReservedColorError,
                                     UnknownVariableError)
from micromap_package.example_data import create_micromap_synthetic_data
from micromap_package.inspector import (form_from_state, inspector_slot_count,
                                        parse_inspector_form, variable_choices)
from micromap_package.link_index import PolygonCatalog
from micromap_package.micromaps import (MicromapSession, build_micromaps, describe_layout,
                                        reconfigure, truncate_label)


def six_regions():
    data = pd.DataFrame({
        'name': ['Ada', 'Bea', 'Cal', 'Dee', 'Eve', 'Fay'],
        'value': [10, 20, 30, 40, 50, 60],
        'other': [1.5, 2.5, 0.5, 3.5, 2.0, 1.0],
    })
    # Fay is drawn first and has two parts
    catalog = PolygonCatalog(
        {'Fay': ['f1', 'f2'], 'Ada': ['a'], 'Bea': ['b'], 'Cal': ['c'], 'Dee': ['d'], 'Eve': ['e']})
    variables = {'id_var': 'name', 'grouping_var': {'name': 'value', 'xlab': 'Units'}}
    return data, catalog, variables


class EndToEndTests(unittest.TestCase):

    def setUp(self):
        self.data, self.catalog, self.variables = six_regions()

    def test_six_regions_two_groups_max_spacing(self):
        state = build_micromaps(self.data, self.variables, self.catalog,
                                MicromapConfig(n_groups=2, spacing='max'))
        self.assertEqual(state.group_sizes, [3, 3])
        top = state.panel(1)
        self.assertEqual(top.names, ['Fay', 'Eve', 'Dee'])
        self.assertEqual(top.values['value'][0], 60)
        self.assertEqual(top.y_positions, [3, 2, 1])
        for panel in state.panels:
            self.assertEqual(panel.extent.delta_y, 4)

    def test_explicit_grouping_ignores_n_groups(self):
        state = build_micromaps(self.data, self.variables, self.catalog,
                                MicromapConfig(grouping=[4, 2], n_groups=3, spacing='max'))
        self.assertEqual(state.group_sizes, [4, 2])
        self.assertEqual(state.panel(2).names, ['Bea', 'Ada'])
        self.assertEqual(state.panel(2).y_positions, [4, 3])
        self.assertEqual([p.extent.delta_y for p in state.panels], [5, 5])

    def test_equal_spacing_scales(self):
        state = build_micromaps(self.data, self.variables, self.catalog,
                                MicromapConfig(grouping=[4, 2]))
        self.assertEqual([p.extent.delta_y for p in state.panels], [5, 3])
        self.assertEqual(state.panel(2).y_positions, [2, 1])

    def test_attribute_override_broadcast_and_length_check(self):
        state = build_micromaps(self.data, self.variables, self.catalog,
                                MicromapConfig(states={'glyph': 'ocircle'}))
        self.assertEqual(state.overrides.table['glyph'].tolist(), ['ocircle'] * 6)
        for panel in state.panels:
            self.assertEqual(panel.states['glyph'], 'ocircle')

        with self.assertRaises(InvalidAttributeLengthError):
            build_micromaps(self.data, self.variables, self.catalog,
                            MicromapConfig(states={'glyph': ['ocircle'] * 5}))

    def test_colors_by_row_and_polygon_background(self):
        state = build_micromaps(self.data, self.variables, self.catalog,
                                MicromapConfig(n_groups=2, color=['red', 'green', 'blue']))
        top = state.panel(1)
        self.assertEqual(top.colors, ['#ff0000', '#008000', '#0000ff'])
        # Draw order: Fay (2 parts), Ada, Bea, Cal, Dee, Eve
        self.assertEqual(top.part_colors, ['#ff0000', '#ff0000', BACKGROUND_COLOR,
                                           BACKGROUND_COLOR, BACKGROUND_COLOR,
                                           '#0000ff', '#008000'])
        bottom = state.panel(2)
        self.assertEqual(bottom.part_colors[:2], [BACKGROUND_COLOR, BACKGROUND_COLOR])

    def test_link_completeness_end_to_end(self):
        state = build_micromaps(self.data, self.variables, self.catalog, MicromapConfig(n_groups=2))
        for panel in state.panels:
            link = state.link_index.group(panel.group)
            for point, rid in enumerate(panel.region_ids):
                parts = link.rows_to_parts([point])
                self.assertEqual(len(parts), len(self.catalog.parts_for(rid)))
                self.assertEqual(link.parts_to_rows(parts), [point])

    def test_reserved_color_rejected(self):
        with self.assertRaises(ReservedColorError):
            build_micromaps(self.data, self.variables, self.catalog,
                            MicromapConfig(color=['#FFF8DC']))

    def test_linking_keys(self):
        state = build_micromaps(self.data, self.variables, self.catalog, MicromapConfig(n_groups=2))
        self.assertEqual(state.linking_key, ['0', '1', '2', '3', '4', '5'])
        self.assertEqual(state.panel(1).linking_keys, ['5', '4', '3'])

        keys = ['k%d' % i for i in range(6)]
        state = build_micromaps(self.data, self.variables, self.catalog,
                                MicromapConfig(linking_key=keys))
        self.assertEqual(sorted(k for p in state.panels for k in p.linking_keys), sorted(keys))

        with self.assertRaises(InvalidAttributeLengthError):
            build_micromaps(self.data, self.variables, self.catalog,
                            MicromapConfig(linking_key=['a', 'b']))
        with self.assertRaises(NonUniqueIdError):
            build_micromaps(self.data, self.variables, self.catalog,
                            MicromapConfig(linking_key=['a'] * 6))

    def test_empty_dataset(self):
        with self.assertRaises(EmptyDatasetError):
            build_micromaps(self.data.iloc[0:0], self.variables, PolygonCatalog({}))

    def test_grid_layout(self):
        variables = dict(self.variables, var2={'name': 'other', 'label': 'Other'})
        state = build_micromaps(self.data, variables, self.catalog,
                                MicromapConfig(n_groups=2, lab_label='People', map_label='Where'))
        grid = state.grid
        self.assertEqual((grid.n_rows, grid.n_columns), (5, 4))
        self.assertEqual(grid.cell_at(0, 0).text, 'People')
        self.assertEqual(grid.cell_at(0, 2).text, 'Other')
        self.assertEqual(grid.cell_at(0, 3).text, 'Where')
        self.assertEqual(grid.cell_at(2, 1).kind, 'scatterplot')
        self.assertEqual(grid.cell_at(2, 3).kind, 'map')
        self.assertEqual(grid.cell_at(3, 1).kind, 'scale')
        self.assertEqual(grid.cell_at(4, 1).text, 'Units')
        self.assertEqual(len(grid.cells_of('scatterplot')), 4)
        self.assertEqual(grid.row_weights[3], 3)
        self.assertEqual(grid.row_minsize, {3: 20})

    def test_grid_pan_zoom_coupling(self):
        variables = dict(self.variables, var2={'name': 'other'})
        grid = build_micromaps(self.data, variables, self.catalog, MicromapConfig(n_groups=2)).grid
        # Each variable column pans with its scale panel
        self.assertEqual(grid.x_links['value'], [(1, 1), (2, 1), (3, 1)])
        self.assertEqual(grid.x_links['other'], [(1, 2), (2, 2), (3, 2)])
        # Each group row pans vertically with its labels, maps excluded
        self.assertEqual(grid.y_links, {1: [(1, 0), (1, 1), (1, 2)],
                                        2: [(2, 0), (2, 1), (2, 2)]})
        self.assertEqual(grid.x_fixed, [(1, 0), (2, 0)])

    def test_shared_domain_across_groups(self):
        state = build_micromaps(self.data, self.variables, self.catalog, MicromapConfig(n_groups=3))
        domain = state.domain(state.grouping_spec)
        self.assertAlmostEqual(domain.low, 7.5)
        self.assertAlmostEqual(domain.high, 62.5)

    def test_rebuild_is_idempotent(self):
        config = MicromapConfig(n_groups=2)
        first = build_micromaps(self.data, self.variables, self.catalog, config)
        second = reconfigure(first, {})
        self.assertEqual([p.region_ids for p in first.panels], [p.region_ids for p in second.panels])
        self.assertEqual(first.colors, second.colors)

    def test_input_data_not_modified(self):
        before = self.data.copy()
        build_micromaps(self.data, self.variables, self.catalog,
                        MicromapConfig(states={'value': 1}))
        pd.testing.assert_frame_equal(self.data, before)

    def test_describe_layout(self):
        state = build_micromaps(self.data, self.variables, self.catalog, MicromapConfig(n_groups=2))
        text = describe_layout(state)
        self.assertIn('6 regions in 2 groups', text)
        self.assertIn('Group 1', text)
        self.assertIn('Fay, Eve, Dee', text)

    def test_truncate_label(self):
        self.assertEqual(truncate_label('x' * 25), 'x' * 25)
        self.assertEqual(truncate_label('x' * 30), 'x' * 25 + '...')


class SessionTests(unittest.TestCase):

    def setUp(self):
        data, catalog, variables = six_regions()
        self.session = MicromapSession.create(data, variables, catalog, MicromapConfig(n_groups=2))

    def test_submit_applies_patch(self):
        self.assertIsNone(self.session.submit({'n_groups': 3, 'spacing': 'max'}))
        self.assertEqual(self.session.state.group_sizes, [2, 2, 2])
        self.assertEqual(self.session.state.config.spacing, 'max')

    def test_failed_submit_keeps_previous_state(self):
        before = self.session.state
        with self.assertLogs('micromap_package.micromaps', level='ERROR'):
            error = self.session.submit({'grouping': [4, 3]})
        self.assertIsInstance(error, InvalidGroupingError)
        self.assertIs(self.session.state, before)

        error = self.session.submit({'variables': {'id_var': 'name',
                                                   'grouping_var': {'name': 'missing'}}})
        self.assertIsInstance(error, UnknownVariableError)
        self.assertIs(self.session.state, before)

    def test_listener_cannot_start_nested_rebuild(self):
        seen = []
        nested = []

        def listener(state):
            seen.append(state.group_sizes)
            try:
                self.session.submit({'n_groups': 1})
            except RebuildInProgressError as err:
                nested.append(err)
                raise

        self.session.subscribe(listener)
        self.session.subscribe(lambda state: seen.append('second'))
        with self.assertLogs('micromap_package.micromaps', level='ERROR'):
            self.assertIsNone(self.session.submit({'n_groups': 3}))
        self.assertEqual(len(nested), 1)
        # The failing listener neither undoes the rebuild nor stops the others
        self.assertEqual(seen, [[2, 2, 2], 'second'])
        self.assertEqual(self.session.state.group_sizes, [2, 2, 2])
        # The guard is released afterwards
        self.session._listeners.clear()
        self.assertIsNone(self.session.submit({'n_groups': 6}))

    def test_empty_variables_rejected(self):
        before = self.session.state
        with self.assertLogs('micromap_package.micromaps', level='ERROR'):
            error = self.session.submit({'variables': {}})
        self.assertIsInstance(error, UnknownVariableError)
        self.assertIs(self.session.state, before)

    def test_wrongly_typed_patch_values_reported(self):
        before = self.session.state
        for patch in ({'linking_key': 5}, {'grouping': 5}, {'n_groups': 'two'},
                      {'states': ['showItemLabels']}):
            with self.subTest(patch=repr(patch)):
                with self.assertLogs('micromap_package.micromaps', level='ERROR'):
                    error = self.session.submit(patch)
                self.assertIsInstance(error, InvalidConfigurationError)
                self.assertIs(self.session.state, before)

    def test_submit_form(self):
        form = form_from_state(self.session.state)
        form['n_groups'] = '3'
        self.assertIsNone(self.session.submit_form(form))
        self.assertEqual(self.session.state.group_sizes, [2, 2, 2])

    def test_unparseable_form_reported(self):
        before = self.session.state
        form = form_from_state(before)
        form['n_groups'] = 'abc'
        with self.assertLogs('micromap_package.micromaps', level='ERROR'):
            error = self.session.submit_form(form)
        self.assertIsInstance(error, InvalidGroupingError)
        self.assertIs(self.session.state, before)

        form.update({'n_groups': '', 'grouping': '3; 3'})
        self.assertIsInstance(self.session.submit_form(form), InvalidGroupingError)
        self.assertIs(self.session.state, before)

    def test_resize_floors_at_one(self):
        self.assertEqual(self.session.resize(+1), 7)
        for _ in range(10):
            self.session.resize(-1)
        self.assertEqual(self.session.state.config.size, 1)


class InspectorTests(unittest.TestCase):

    def setUp(self):
        self.data, self.catalog, _ = create_micromap_synthetic_data()
        self.state = build_micromaps(
            self.data,
            {'id_var': 'ST_NAME', 'grouping_var': {'name': 'pov'}, 'var2': {'name': 'ed'}},
            self.catalog, MicromapConfig(num_optvars=3))

    def test_variable_choices_are_numeric(self):
        self.assertEqual(variable_choices(self.data), ['pov', 'ed', 'pop'])

    def test_slot_count(self):
        self.assertEqual(inspector_slot_count(self.state), 3)

    def test_form_round_trip(self):
        form = form_from_state(self.state)
        self.assertEqual(len(form['optional']), 3)
        self.assertEqual(form['optional'][1]['name'], 'N/A')
        patch = parse_inspector_form(form, id_var='ST_NAME')
        self.assertEqual(list(patch['variables']), ['id_var', 'grouping_var', 'var1'])
        rebuilt = reconfigure(self.state, patch)
        self.assertEqual([s.name for s in rebuilt.specs], ['pov', 'ed'])
        self.assertEqual(rebuilt.group_sizes, self.state.group_sizes)

    def test_parse_grouping_text_and_blank_labels(self):
        form = form_from_state(self.state)
        form.update({'grouping': '4, 4, 4', 'lab_label': '', 'map_label': '', 'n_groups': '2'})
        patch = parse_inspector_form(form, id_var='ST_NAME')
        self.assertEqual(patch['grouping'], [4.0, 4.0, 4.0])
        self.assertEqual(patch['n_groups'], 2.0)
        self.assertEqual(patch['lab_label'], 'Labels')
        self.assertEqual(patch['map_label'], 'Maps')
        rebuilt = reconfigure(self.state, patch)
        self.assertEqual(rebuilt.group_sizes, [4, 4, 4])

    def test_bad_grouping_text(self):
        form = form_from_state(self.state)
        form['grouping'] = '4; 8'
        with self.assertRaises(InvalidGroupingError):
            parse_inspector_form(form, id_var='ST_NAME')


if __name__ == "__main__":
    unittest.main()
