"""
Browser-side scripts for the map pages.

This module contains JavaScript evaluated inside the page:

- PAGE_STATE_JS: reads the place payload from the app's global state
- SCROLL_FEED_JS: scrolls a feed container to the bottom, resolves with its
  height after a wait so lazily loaded items can attach
- REVIEWS_JS: reads the review cards currently attached to the review feed
"""

# Selectors
RESULTS_FEED_SELECTOR = "div[role='feed']"
REVIEWS_FEED_SELECTOR = "div.m6QErb.DxyBCb.kA9KIf.dS8AEf"
REVIEWS_TAB_SELECTOR = "button[role='tab'][aria-label*='Reviews'], button[role='tab'][data-tab-index='1']"
RESULT_LINK_SELECTOR = "div[role='feed'] div[jsaction] > a"
REJECT_COOKIES_SELECTOR = "form[action*='consent'] button[aria-label*='Reject'], button[aria-label='Reject all']"

# The payload is a JSON-encoded string at APP_INITIALIZATION_STATE[3][6].
# Unexpected shapes are reported as a JSON error object so the caller's
# validation rejects them and retries.
PAGE_STATE_JS = r"""
() => {
  try {
    const state = window.APP_INITIALIZATION_STATE;
    if (!state) {
      return null;
    }
    if (!Array.isArray(state) || state.length <= 3 ||
        !Array.isArray(state[3]) || state[3].length <= 6) {
      return JSON.stringify({error: 'Unexpected data structure'});
    }
    return state[3][6];
  } catch (e) {
    return JSON.stringify({error: e.message});
  }
}
"""

SCROLL_FEED_JS = r"""
async ({selector, waitMs}) => {
  const el = document.querySelector(selector);
  if (!el) {
    throw new Error('Scroll element not found: ' + selector);
  }
  if (typeof el.scrollHeight === 'undefined') {
    throw new Error('Element does not have scrollHeight property');
  }
  el.scrollTop = el.scrollHeight;
  return new Promise((resolve) => {
    setTimeout(() => resolve(el.scrollHeight), waitMs);
  });
}
"""

REVIEWS_JS = r"""
(selector) => {
  const root = document.querySelector(selector) || document;
  const cards = Array.from(root.querySelectorAll('div[data-review-id].jftiEf'));
  const text = (el) => (el && (el.innerText || el.textContent) || '').trim();
  return cards.map(card => {
    const author = card.querySelector('.d4r55');
    const profile = card.querySelector('button[data-href], a[href*="/contrib/"]');
    const stars = card.querySelector('span[role="img"][aria-label]');
    let rating = 0;
    if (stars) {
      const m = (stars.getAttribute('aria-label') || '').match(/[0-9]+([.,][0-9]+)?/);
      if (m) rating = parseFloat(m[0].replace(',', '.'));
    }
    return {
      author_name: text(author),
      author_url: profile ? (profile.getAttribute('data-href') || profile.getAttribute('href') || '') : '',
      rating: rating,
      relative_time: text(card.querySelector('.rsqaWe')),
      text: text(card.querySelector('.wiI7pd')),
    };
  });
}
"""
