from wpapi.response import PageValues, page_values

URL = "https://example.com/wp-json/wp/v2/posts"
TOTALS = {"X-WP-Total": "57", "X-WP-TotalPages": "6"}


def test_explicit_page():
    pages = page_values(TOTALS, URL + "?page=3")
    assert pages == PageValues(
        total_records=57, total_pages=6, current_page=3, previous_page=2, next_page=4
    )


def test_missing_page_parameter_means_first_page():
    pages = page_values(TOTALS, URL)
    assert (pages.current_page, pages.previous_page, pages.next_page) == (1, 0, 2)


def test_no_pagination_headers():
    assert page_values({}, URL) == PageValues()


def test_last_page_has_no_next_page():
    pages = page_values(TOTALS, URL + "?page=6")
    assert pages.next_page == 0
    assert pages.previous_page == 5


def test_page_beyond_total_has_no_next_page():
    assert page_values(TOTALS, URL + "?page=9").next_page == 0


def test_single_header_does_not_imply_first_page():
    pages = page_values({"X-WP-Total": "3"}, URL)
    assert pages.total_records == 3
    assert pages.current_page == 0


def test_non_pretty_request_url():
    pages = page_values(TOTALS, "https://example.com/?rest_route=/wp/v2/posts&page=2")
    assert (pages.current_page, pages.previous_page, pages.next_page) == (2, 1, 3)


def test_garbage_values_count_as_zero():
    pages = page_values({"X-WP-Total": "many", "X-WP-TotalPages": "x"}, URL + "?page=abc")
    assert pages.total_records == 0
    assert pages.total_pages == 0
    assert pages.current_page == 1
    assert pages.next_page == 0
